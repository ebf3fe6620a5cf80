# services/storage.py
"""
Storage for documents uploaded during move-in (signed lease, ID proof,
deposit receipt, inspection report).

Files go to Azure Blob Storage when an account and key are configured,
otherwise to the local uploads directory served under /uploads.
"""
import logging
import os
import shutil
import uuid
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from azure.storage.blob import BlobServiceClient, ContentSettings

from config import Settings

logger = logging.getLogger(__name__)


def _safe_name(filename: str) -> str:
     return os.path.basename(filename or "document").replace(" ", "_")


class DocumentStorage:
     def __init__(
          self,
          local_dir: str,
          public_prefix: str = "/uploads/documents",
          account: Optional[str] = None,
          key: Optional[str] = None,
          container: str = "documents",
     ):
          self.local_dir = local_dir
          self.public_prefix = public_prefix.rstrip("/")
          self.account = account
          self.container = container
          self._blob_service = None
          if account and key:
               self._blob_service = BlobServiceClient.from_connection_string(
                    f"DefaultEndpointsProtocol=https;"
                    f"AccountName={account};"
                    f"AccountKey={key};"
                    f"EndpointSuffix=core.windows.net"
               )

     @classmethod
     def from_settings(cls, settings: Settings) -> "DocumentStorage":
          return cls(
               local_dir=settings.documents_dir,
               account=settings.azure_storage_account,
               key=settings.azure_storage_key,
               container=settings.azure_documents_container,
          )

     def save(self, fileobj: BinaryIO, filename: str, content_type: Optional[str], size: int, owner_id: int) -> dict:
          """
          Store one uploaded file.

          Returns:
               {url, filename, size, type, uploaded_at} - stored verbatim on
               the lease under documents.<key>
          """
          ext = os.path.splitext(filename or "")[1]
          stored_name = f"{owner_id}-{uuid.uuid4()}{ext}"

          if self._blob_service is not None:
               blob_name = f"{owner_id}/{uuid.uuid4()}{ext}"
               blob_client = self._blob_service.get_blob_client(container=self.container, blob=blob_name)
               blob_client.upload_blob(
                    fileobj,
                    overwrite=True,
                    content_settings=ContentSettings(content_type=content_type),
               )
               url = f"https://{self.account}.blob.core.windows.net/{self.container}/{blob_name}"
               logger.info("Uploaded document to blob storage: %s", url)
          else:
               os.makedirs(self.local_dir, exist_ok=True)
               with open(os.path.join(self.local_dir, stored_name), "wb") as buffer:
                    shutil.copyfileobj(fileobj, buffer)
               url = f"{self.public_prefix}/{stored_name}"
               logger.info("Stored document locally: %s", url)

          return {
               "url": url,
               "filename": _safe_name(filename),
               "size": size,
               "type": content_type,
               "uploaded_at": datetime.now(timezone.utc).isoformat(),
          }
