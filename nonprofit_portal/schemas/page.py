# nonprofit_portal/schemas/page.py
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class PageRead(BaseModel, Generic[T]):
    items: List[T] = []
    total_count: int = 0
    total_pages: int = 0
    current_page: int = 1
    per_page: int
    search: str = ""
    error_message: str = ""
    success_message: Optional[str] = None
