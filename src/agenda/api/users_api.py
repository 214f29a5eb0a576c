"""
User Management API
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from agenda.core.database import get_db
from agenda.core.exceptions import DuplicateException
from agenda.repositories.user_repository import UserRepository
from agenda.schemas.common import MessageResponse
from agenda.schemas.user import (
    CreateUserRequest,
    UserResponse,
    UserListResponse,
)


router = APIRouter(
    prefix="/users",
    tags=["Users"]
)


@router.get("", response_model=UserListResponse)
async def list_users(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    repo = UserRepository(db)
    users = repo.list_where(limit=limit, offset=skip)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total_count=len(users)
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: Session = Depends(get_db)):
    repo = UserRepository(db)
    user = repo.get(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(request: CreateUserRequest, db: Session = Depends(get_db)):
    repo = UserRepository(db)
    try:
        user = repo.create_user(request.model_dump())
    except DuplicateException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: int, db: Session = Depends(get_db)):
    repo = UserRepository(db)
    if not repo.delete_by_id(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"message": "User deleted", "user_id": user_id}
