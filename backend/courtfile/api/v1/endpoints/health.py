"""
Readiness checks for the collaborators the filing flow depends on.
"""
from fastapi import APIRouter
from sqlalchemy import text

from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.db.database import SessionLocal

router = APIRouter()


def _check_database() -> tuple[str, str]:
    """Returns (status, detail). Status is 'ok' or 'error'."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return "ok", "Database reachable"
    except Exception as e:
        logger.exception("Database check failed")
        return "error", f"Database: {str(e)}"
    finally:
        db.close()


def _check_storage() -> tuple[str, str]:
    """Returns (status, detail). Status is 'ok' or 'error'."""
    if settings.STORAGE_BACKEND != "s3":
        return "ok", f"Local uploads at '{settings.UPLOAD_DIR}'"
    try:
        import boto3
        from botocore.exceptions import ClientError

        client = boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        )
        bucket = settings.S3_BUCKET_NAME
        client.head_bucket(Bucket=bucket)
        return "ok", f"Bucket '{bucket}' accessible"
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        return "error", f"S3: {code} - {str(e)}"
    except Exception as e:
        return "error", f"S3: {str(e)}"


def _check_payment_gateway() -> tuple[str, str]:
    if settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET:
        return "ok", "Razorpay credentials configured"
    return "error", "Razorpay credentials missing"


@router.get("/ready")
def readiness():
    """
    Check collaborators the filing flow depends on.
    - database: SELECT 1
    - storage: head_bucket when STORAGE_BACKEND=s3
    - payments: Razorpay key id/secret present
    """
    db_status, db_detail = _check_database()
    storage_status, storage_detail = _check_storage()
    gateway_status, gateway_detail = _check_payment_gateway()

    healthy = db_status == "ok" and storage_status == "ok" and gateway_status == "ok"
    return {
        "status": "healthy" if healthy else "degraded",
        "database": {"status": db_status, "detail": db_detail},
        "storage": {"status": storage_status, "detail": storage_detail},
        "payments": {"status": gateway_status, "detail": gateway_detail},
        "email": {"provider": settings.EMAIL_PROVIDER},
    }
