"""Annotated dependencies shared by handlers."""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from app.api.gates import get_current_user
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.common import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, PageParams


def page_params(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_LIMIT)] = DEFAULT_PAGE_LIMIT,
) -> PageParams:
    return PageParams(page=page, limit=limit)


DbDep = Annotated[Session, Depends(get_db)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
PageDep = Annotated[PageParams, Depends(page_params)]
