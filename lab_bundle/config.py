import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./lab_bundle.db")
    PHI_ENCRYPTION_KEY: str = os.getenv("PHI_ENCRYPTION_KEY", "")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    SUBMISSION_URL: str = os.getenv(
        "SUBMISSION_URL",
        "https://uat.discharge.org.in/api/v5/fhir-bundle",
    )
    SUBMISSION_TIMEOUT: float = float(os.getenv("SUBMISSION_TIMEOUT", "30"))

    PATIENTS_FILE: str = os.getenv("PATIENTS_FILE", "data/patients.json")
    PRACTITIONER_FILE: str = os.getenv("PRACTITIONER_FILE", "")
    PRACTITIONER_JSON: str = os.getenv("PRACTITIONER_JSON", "")


settings = Settings()
