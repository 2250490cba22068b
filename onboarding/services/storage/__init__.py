from onboarding.services.storage.file_storage import LocalFileStorage, StoredFile, safe_filename

__all__ = ["LocalFileStorage", "StoredFile", "safe_filename"]
