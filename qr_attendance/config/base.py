"""Settings shared by every environment."""
import os
from datetime import timedelta

class BaseConfig:
    """Base configuration class."""
    
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ALGORITHM = 'HS256'
    
    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]
    
    # Rate Limiting
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_DEFAULT = "200 per day, 50 per hour"
    
    # Attendance policy
    FACE_RECOGNITION_THRESHOLD = 0.6  # admission
    FACE_VERIFIED_THRESHOLD = 0.8     # sets the verified flag only
    FACE_EMBEDDING_DIMENSIONS = 128
    TICKET_EXPIRY_BUFFER_MINUTES = 30
    LATE_THRESHOLD_MINUTES = 15
    DEFAULT_SESSION_CAPACITY = 100
    
    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
    
    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
