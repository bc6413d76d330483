import base64
import binascii
import re
import time
from datetime import datetime, timedelta
from typing import Dict, Optional, Protocol

from condo.core.config import settings
from condo.core.dates import utc_now
from condo.core.errors import CondoError, ValidationError
from condo.core.logger import logger
from condo.models.api_models import CleanupResult
from condo.services.db_service import Filter, RecordStore

DATA_URL = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


class PhotoStorage(Protocol):
    async def upload(self, path: str, content: bytes, content_type: str) -> None: ...

    async def remove(self, path: str) -> None: ...

    def public_url(self, path: str) -> str: ...


class SupabasePhotoStorage:
    def __init__(self, store, bucket: str = None):
        # shares the store's lazily created client
        self.store = store
        self.bucket = bucket or settings.PHOTOS_BUCKET

    async def upload(self, path, content, content_type):
        client = await self.store.get_client()
        await client.storage.from_(self.bucket).upload(path, content, {"content-type": content_type})

    async def remove(self, path):
        client = await self.store.get_client()
        await client.storage.from_(self.bucket).remove([path])

    def public_url(self, path):
        return f"{settings.SUPABASE_URL}/storage/v1/object/public/{self.bucket}/{path}"


class InMemoryPhotoStorage:
    def __init__(self, bucket: str = None):
        self.bucket = bucket or settings.PHOTOS_BUCKET
        self.objects: Dict[str, bytes] = {}

    async def upload(self, path, content, content_type):
        self.objects[path] = content

    async def remove(self, path):
        self.objects.pop(path, None)

    def public_url(self, path):
        return f"memory://storage/{self.bucket}/{path}"


def decode_data_url(data_url: str, max_bytes: int = None) -> tuple:
    """Returns (bytes, mime type) of a camera capture data URL."""
    max_bytes = max_bytes or settings.PHOTO_MAX_BYTES
    match = DATA_URL.match(data_url.strip())
    if not match:
        raise ValidationError("Foto inválida.", field="photo")
    try:
        content = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Foto inválida.", field="photo")
    if len(content) > max_bytes:
        raise ValidationError("A foto excede o tamanho máximo de 5 MB.", field="photo")
    return content, match.group("mime")


class StorageService:
    def __init__(self, store: RecordStore, storage: PhotoStorage):
        self.store = store
        self.storage = storage

    async def upload_photo(self, folder: str, data_url: Optional[str]) -> Optional[str]:
        if not data_url:
            return None
        content, mime = decode_data_url(data_url)
        path = f"{folder}/{int(time.time() * 1000)}.jpg"
        try:
            await self.storage.upload(path, content, mime)
        except CondoError:
            raise
        except Exception as e:
            logger.error(f"❌ Error uploading photo {path}: {e}")
            raise CondoError("Não foi possível enviar a foto.", detail=str(e))
        logger.info(f"📷 Photo uploaded: {path} ({len(content)} bytes)")
        return self.storage.public_url(path)

    async def cleanup_old_photos(self, now: Optional[datetime] = None) -> CleanupResult:
        """Removes parcel photos older than the retention window and clears their URLs."""
        now = now or utc_now()
        cutoff = now - timedelta(days=settings.PHOTO_RETENTION_DAYS)
        logger.info(f"🧹 Starting cleanup for photos older than: {cutoff.isoformat()}")

        old_parcels = await self.store.list("parcels", [
            Filter(op="not_null", column="photo_url"),
            Filter(op="lt", column="arrived_at", value=cutoff),
        ])
        result = CleanupResult(total_found=len(old_parcels))
        if not old_parcels:
            logger.info("🧹 No old photos to clean up")
            return result

        # object path inside the bucket, from a public or signed URL
        object_path = re.compile(rf"/{re.escape(self.storage.bucket)}/([^?]+)")
        for parcel in old_parcels:
            match = object_path.search(parcel["photo_url"])
            if not match:
                logger.warning(f"⚠️ Could not extract file path from URL for parcel {parcel['id']}")
                result.errors.append(f"Could not extract file path for parcel {parcel['id']}")
                continue
            try:
                await self.storage.remove(match.group(1))
                await self.store.update("parcels", parcel["id"], {"photo_url": None})
                result.deleted += 1
            except Exception as e:
                logger.error(f"❌ Error processing parcel {parcel['id']}: {e}")
                result.errors.append(f"Error processing parcel {parcel['id']}: {e}")

        logger.info(f"🏁 Cleanup result: found={result.total_found} deleted={result.deleted} errors={len(result.errors)}")
        return result
