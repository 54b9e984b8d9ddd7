from pydantic import BaseModel
from typing import Optional, List


class NextcloudItem(BaseModel):
    id: str
    label: str
    main_category: str
    sub_category: str
    path: str
    type: str  # folder | file
    size: Optional[int] = None
    last_modified: Optional[str] = None
    has_children: bool = False
    content_type: Optional[str] = None
    file_extension: Optional[str] = None
    children: Optional[List["NextcloudItem"]] = None


class NextcloudListing(BaseModel):
    path: str
    count: int
    data: List[NextcloudItem]
