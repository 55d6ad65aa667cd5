from typing import List, Optional

from schemas.common import CamelModel


class MigrationError(CamelModel):
    id: int
    error: str


class MigrationBatchOut(CamelModel):
    success: bool = True
    message: str
    migrated: int = 0
    processed: int = 0
    remaining: int = 0
    last_id: Optional[int] = None
    errors: Optional[List[MigrationError]] = None


class MigrationQueuedOut(CamelModel):
    success: bool = True
    message: str
    task_id: str


class MigrationStatusOut(CamelModel):
    total: int
    with_base64: int
    with_external_url: int
    without_image: int
    product_ids_with_base64: List[int] = []
