from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # ======================
    # Database (Render-ready)
    # ======================
    DATABASE_URL: str = Field(default="sqlite:///./exam.db", env="DATABASE_URL")

    # =========
    # App
    # =========
    APP_NAME: str = "Exam Administration API"
    DEBUG: bool = Field(default=False, env="DEBUG")
    FRONTEND_URL: str = Field(default="*", env="FRONTEND_URL")

    # =========
    # JWT
    # =========
    JWT_SECRET_KEY: str = Field(default="change-me", env="JWT_SECRET_KEY")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=1440,
        env="JWT_ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # =========
    # Email (SMTP)
    # =========
    EMAIL_HOST: str = Field(default="localhost", env="EMAIL_HOST")
    EMAIL_PORT: int = Field(default=587, env="EMAIL_PORT")
    EMAIL_USER: str = Field(default="", env="EMAIL_USER")
    EMAIL_PASS: str = Field(default="", env="EMAIL_PASS")
    EMAIL_FROM: str = Field(default="no-reply@yourapp.com", env="EMAIL_FROM")

    # =========
    # Exam
    # =========
    EXAM_DURATION_MINUTES: int = 15
    EXAM_QUESTION_COUNT: int = 20
    OTP_LENGTH: int = 5
    REVIEW_BASE_URL: str = Field(default="http://localhost:3000/reviewbaithi", env="REVIEW_BASE_URL")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
