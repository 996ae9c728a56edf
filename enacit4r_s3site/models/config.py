from typing import Optional
from pydantic import BaseModel, ConfigDict, model_validator

class SiteConfigError(Exception):
  """Exception raised when the site configuration cannot be used."""
  pass

class SiteConfig(BaseModel):
  """The options of a site generation run, built once and shared by all components."""
  model_config = ConfigDict(frozen=True)

  bucket: str = ""
  region: str = ""
  access_key_id: str = ""
  secret_access_key: str = ""
  session_token: Optional[str] = None
  endpoint: Optional[str] = None
  force_path_style: bool = False
  footer: str = ""
  output: str = "."
  verbose: bool = False
  include_hidden_files: bool = False
  include_sitemap: bool = False
  domain: str = ""
  root_path: str = "/"
  page_size: int = 1000

  @model_validator(mode="before")
  @classmethod
  def force_path_style_with_endpoint(cls, data):
    # custom endpoints are addressed with the bucket in the path
    if isinstance(data, dict) and data.get("endpoint") and not data.get("force_path_style"):
      data = {**data, "force_path_style": True}
    return data

  def check(self):
    """Verify the configuration allows a run, before anything is listed or written.

    Raises:
        SiteConfigError: When the bucket is missing, or the sitemap is requested without a domain.
    """
    if not self.bucket:
      raise SiteConfigError("Bucket not set. Please set the AWS_BUCKET environment variable or use the --bucket option.")
    if self.include_sitemap and not self.domain:
      raise SiteConfigError("Domain is required if using sitemap. Domain is not currently set. Please set the --domain option.")
    return self
