import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tubarrio.db")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(24 * 60)))  # 1 day

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Object storage (any S3 compatible endpoint)
STORAGE_ENDPOINT_URL = os.getenv("STORAGE_ENDPOINT_URL")
STORAGE_ACCESS_KEY_ID = os.getenv("STORAGE_ACCESS_KEY_ID")
STORAGE_SECRET_ACCESS_KEY = os.getenv("STORAGE_SECRET_ACCESS_KEY")
STORAGE_REGION = os.getenv("STORAGE_REGION", "auto")
STORAGE_PUBLIC_URL = (os.getenv("STORAGE_PUBLIC_URL") or "").rstrip("/")

BUCKET_REPORT_IMAGES = os.getenv("BUCKET_REPORT_IMAGES", "report-images")
BUCKET_COMMENT_IMAGES = os.getenv("BUCKET_COMMENT_IMAGES", "comment-images")
BUCKET_AVATARS = os.getenv("BUCKET_AVATARS", "avatars")

AVATAR_PLACEHOLDER_URL = os.getenv("AVATAR_PLACEHOLDER_URL", "https://ui-avatars.com/api/")

# Uploads
MAX_UPLOAD_SIZE_MB = 5
MAX_UPLOAD_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024
IMAGE_MAX_DIMENSION = 1920
IMAGE_QUALITY = 80

# Listing
REPORTS_PER_PAGE = 9
MAX_PAGE_SIZE = 50

REPORT_TYPES = ["Vialidad", "Alumbrado", "Basura", "Seguridad", "Áreas verdes", "Otro"]
BARRIOS = [
    "Col. Centro",
    "Las Flores",
    "Av. Central",
    "Parque Norte",
    "San José",
    "Vista Hermosa",
    "El Roble",
]
REPORT_STATUSES = ["Abierto", "En proceso", "Resuelto"]
