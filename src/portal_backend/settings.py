import os
import threading

def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ["true", "1", "yes", "on"]

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE", "development")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
        # Where modules, aliases, permissions and grants are read from: http | database | memory
        self.DIRECTORY_BACKEND = os.environ.get("DIRECTORY_BACKEND", "http")
        self.DIRECTORY_API_URL = os.environ.get("DIRECTORY_API_URL", "http://localhost:8080/api")
        self.DIRECTORY_API_TIMEOUT = float(os.environ.get("DIRECTORY_API_TIMEOUT", "10"))
        self.DIRECTORY_SEED_FILE = os.environ.get("DIRECTORY_SEED_FILE", None)
        # Structural lookup cache; 0 disables it
        self.DIRECTORY_CACHE_TTL = int(os.environ.get("DIRECTORY_CACHE_TTL", "0"))
        self.DIRECTORY_CACHE_BACKEND = os.environ.get("DIRECTORY_CACHE_BACKEND", "memory")
        self.ENABLE_CORS = _flag("ENABLE_CORS", "true")

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

settings = BackendSettings()
