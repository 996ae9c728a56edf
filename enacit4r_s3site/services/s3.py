from typing import List
from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from ..models.config import SiteConfig
from ..models.site import S3Object
import logging

class S3Error(Exception):
    """Exception raised when listing the S3 bucket."""
    pass

class S3Service(object):

    def __init__(self, config: SiteConfig):
        """Initiate the S3 service.

        Args:
            config (SiteConfig): The site configuration, providing the endpoint, credentials,
            region, bucket and addressing style.
        """
        self.s3_endpoint_url = config.endpoint
        self.s3_access_key_id = config.access_key_id
        self.s3_secret_access_key = config.secret_access_key
        self.s3_session_token = config.session_token
        self.region = config.region
        self.bucket = config.bucket
        self.force_path_style = config.force_path_style
        self.page_size = config.page_size

    async def list_objects(self) -> List[S3Object]:
        """List all the objects of the bucket, following the pagination markers.

        Raises:
            S3Error: When the storage rejects or fails a listing request.

        Returns:
            List[S3Object]: The listed objects, in listing order.
        """
        objects = []
        async with self._create_client() as client:
            paginator = client.get_paginator('list_objects')
            try:
                async for page in paginator.paginate(Bucket=self.bucket,
                                                     PaginationConfig={'PageSize': self.page_size}):
                    contents = page.get('Contents', [])
                    objects.extend(self._to_s3_object(content) for content in contents)
                    logging.info(f"Listed {len(contents)} objects from {self.bucket}")
            except (ClientError, BotoCoreError) as e:
                raise S3Error(f"Failed to list bucket {self.bucket}: {e}") from e
        logging.info(f"Listed {len(objects)} objects in total from {self.bucket}")
        return objects

    #
    # Private methods
    #

    def _to_s3_object(self, content: dict) -> S3Object:
        return S3Object(key=content["Key"],
                        size=content.get("Size"),
                        last_modified=content.get("LastModified"),
                        etag=content.get("ETag"),
                        storage_class=content.get("StorageClass"))

    def _create_client(self):
        """Create an S3 client using the provided credentials and endpoint URL.

        Returns:
            Any: The S3 client.
        """
        settings = {
            'addressing_style': 'path' if self.force_path_style else 'virtual'
        }
        config = Config(
            s3=settings,
            signature_version='s3v4'
        )

        session = get_session()
        return session.create_client(
            's3',
            region_name=self.region or None,
            endpoint_url=self.s3_endpoint_url or None,
            aws_secret_access_key=self.s3_secret_access_key or None,
            aws_access_key_id=self.s3_access_key_id or None,
            aws_session_token=self.s3_session_token or None,
            config=config)
