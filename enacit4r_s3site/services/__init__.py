from .s3 import S3Service, S3Error
from .site import SiteWriter, generate_site
