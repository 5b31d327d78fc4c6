"""MinIO 객체 스토리지 서비스 (공문 첨부 문서)"""

import logging
from io import BytesIO
from uuid import uuid4

from minio import Minio
from minio.error import S3Error

from correspondence.core.config import get_settings

logger = logging.getLogger(__name__)


class StorageService:
    """MinIO 스토리지 서비스"""

    BUCKET_DOCUMENTS = "documents"

    def __init__(self):
        self._client: Minio | None = None

    def _get_client(self) -> Minio:
        """Lazy initialization of MinIO client"""
        if self._client is None:
            settings = get_settings()
            self._client = Minio(
                endpoint=settings.minio_endpoint,
                access_key=settings.minio_access_key,
                secret_key=settings.minio_secret_key,
                secure=settings.minio_secure,
            )
            self._ensure_buckets()
        return self._client

    def _ensure_buckets(self) -> None:
        """필요한 버킷 생성"""
        try:
            if not self._client.bucket_exists(self.BUCKET_DOCUMENTS):
                self._client.make_bucket(self.BUCKET_DOCUMENTS)
                logger.info(f"Created bucket: {self.BUCKET_DOCUMENTS}")
        except S3Error as e:
            logger.error(f"Failed to create bucket: {e}")
            raise

    def upload_document(
        self,
        extension: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """문서 업로드

        Args:
            extension: 파일 확장자 (pdf, doc, docx)
            data: 문서 바이트
            content_type: 콘텐츠 타입

        Returns:
            업로드된 객체 경로
        """
        client = self._get_client()
        object_name = f"letters/{uuid4().hex}.{extension}"
        try:
            client.put_object(
                bucket_name=self.BUCKET_DOCUMENTS,
                object_name=object_name,
                data=BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
            logger.info(f"Uploaded: {self.BUCKET_DOCUMENTS}/{object_name}")
            return object_name
        except S3Error as e:
            logger.error(f"Upload failed: {e}")
            raise

    def check_document_exists(self, object_name: str) -> bool:
        """문서 존재 여부 확인"""
        client = self._get_client()
        try:
            client.stat_object(bucket_name=self.BUCKET_DOCUMENTS, object_name=object_name)
            return True
        except S3Error as e:
            if e.code == "NoSuchKey":
                return False
            logger.error(f"Failed to check file existence: {e}")
            raise

    def get_document(self, object_name: str) -> bytes:
        """문서 다운로드

        Args:
            object_name: 객체 경로

        Returns:
            파일 데이터
        """
        client = self._get_client()
        try:
            response = client.get_object(
                bucket_name=self.BUCKET_DOCUMENTS, object_name=object_name
            )
            data = response.read()
            response.close()
            response.release_conn()
            return data
        except S3Error as e:
            logger.error(f"Download failed: {e}")
            raise

    def delete_document(self, object_name: str) -> None:
        """문서 삭제"""
        client = self._get_client()
        try:
            client.remove_object(self.BUCKET_DOCUMENTS, object_name)
            logger.info(f"Deleted: {self.BUCKET_DOCUMENTS}/{object_name}")
        except S3Error as e:
            logger.error(f"Delete failed: {e}")
            raise


# 싱글톤 인스턴스
storage_service = StorageService()
