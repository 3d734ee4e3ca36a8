"""
Create the R2 bucket used for bicycle images and invoices
Usage: python setup_storage.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from bikeregistry.config import R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_PUBLIC_URL
from bikeregistry.utils.storage import ensure_bucket

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    if not R2_ACCOUNT_ID:
        logger.error("❌ R2_ACCOUNT_ID is not set")
        sys.exit(1)

    try:
        created = ensure_bucket()
    except Exception as e:
        logger.error(f"❌ Storage setup failed: {e}")
        sys.exit(1)

    logger.info(f"✅ Bucket {R2_BUCKET_NAME} {'created' if created else 'ready'}")
    if not R2_PUBLIC_URL:
        logger.warning(
            "⚠️ R2_PUBLIC_URL is not set; image URLs will be signed links that expire after 7 days"
        )
