from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, computed_field

class S3Object(BaseModel):
  key: str
  size: Optional[int] = None
  last_modified: Optional[datetime] = None
  etag: Optional[str] = None
  storage_class: Optional[str] = None

class SiteNode(BaseModel):
  key: str
  key_parts: List[str] = Field(default_factory=list)
  levels_deep: int = 0
  is_folder: bool
  is_hidden_file: bool = False
  parent_key: str = ""
  file_name: str = ""
  url: str = ""
  size: Optional[int] = None
  last_modified: Optional[datetime] = None
  children: List["SiteNode"] = Field(default_factory=list)

  @computed_field
  @property
  def is_file(self) -> bool:
    return not self.is_folder

  @property
  def is_root(self) -> bool:
    return self.levels_deep == 0

class SiteTree(BaseModel):
  root: SiteNode
  nodes: List[SiteNode] = Field(default_factory=list)

  def folders(self) -> List[SiteNode]:
    return [node for node in self.nodes if node.is_folder]

  def files(self) -> List[SiteNode]:
    return [node for node in self.nodes if node.is_file]

# We need to update self references.
SiteNode.model_rebuild()
