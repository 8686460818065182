from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .assets.store import AssetStore, LocalAssetStore
from .core.constants import DEFAULT_MAX_IMPORT_ROWS, DEFAULT_PASS_ID_MAX_RETRIES
from .database.connection import DBConfig, DatabaseConnection
from .imports.reconciler import BulkImportReconciler
from .passes.allocator import PassIdAllocator
from .passes.guard import UniquenessGuard
from .passes.mysql_pass_repository import MySQLPassRepository
from .passes.repository import PassRepository
from .passes.service import PassService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    passes_repo: PassRepository
    asset_store: AssetStore

    allocator: PassIdAllocator
    guard: UniquenessGuard

    auth_service: AuthService
    user_service: UserService
    pass_service: PassService
    reconciler: BulkImportReconciler


def wire(
    *,
    users_repo: UserRepository,
    passes_repo: PassRepository,
    asset_store: AssetStore,
    base_offsets: Optional[Mapping[str, int]] = None,
    max_retries: int = DEFAULT_PASS_ID_MAX_RETRIES,
    max_import_rows: int = DEFAULT_MAX_IMPORT_ROWS,
) -> Container:
    """Build the services on top of whichever repositories are given (MySQL or test fakes)."""
    allocator = PassIdAllocator(passes_repo, base_offsets=base_offsets)
    guard = UniquenessGuard(passes_repo)

    return Container(
        users_repo=users_repo,
        passes_repo=passes_repo,
        asset_store=asset_store,
        allocator=allocator,
        guard=guard,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        pass_service=PassService(passes_repo, allocator, guard, asset_store, max_retries=max_retries),
        reconciler=BulkImportReconciler(passes_repo, allocator, guard, max_rows=max_import_rows),
    )


def build_container(
    *,
    db_config: dict,
    upload_dir: str,
    base_offsets: Optional[Mapping[str, int]] = None,
    max_retries: int = DEFAULT_PASS_ID_MAX_RETRIES,
    max_import_rows: int = DEFAULT_MAX_IMPORT_ROWS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        passes_repo=MySQLPassRepository(conn),
        asset_store=LocalAssetStore(upload_dir),
        base_offsets=base_offsets,
        max_retries=max_retries,
        max_import_rows=max_import_rows,
    )
