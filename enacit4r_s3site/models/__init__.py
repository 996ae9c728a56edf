from .config import SiteConfig, SiteConfigError
from .site import S3Object, SiteNode, SiteTree
