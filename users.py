import logging
from typing import List, Optional

from fastapi import APIRouter, Response, status
from pymongo.errors import DuplicateKeyError

from database import NEWEST_FIRST, USERS, create_document, get_document, get_documents, update_document
from errors import InvalidInput, NotFound
from schemas import (
    CreateBasicUser,
    DebugUsers,
    Preferences,
    RegisterUser,
    User,
    UserEnvelope,
    UserPatch,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


def normalize_email(email: str) -> str:
    return email.strip().lower()


def first_name(name: str) -> str:
    parts = name.split()
    return parts[0] if parts else ""


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def new_user(email: str, name: str = "", nickname: str = "", phone: str = "") -> dict:
    return {
        "email": email,
        "name": name,
        "nickname": nickname,
        "phone": phone,
        "addresses": [],
        "preferences": Preferences().model_dump(),
    }


async def find_user(email: str) -> Optional[dict]:
    return await get_document(USERS, {"email": normalize_email(email)})


@router.post("/api/users/create-basic", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_basic_user(payload: CreateBasicUser, response: Response):
    if not (_present(payload.email) and _present(payload.nickname)):
        raise InvalidInput("Email and nickname required")

    email = normalize_email(payload.email)
    existing = await find_user(email)
    if existing:
        response.status_code = status.HTTP_200_OK
        return {"message": "User exists", "user": existing}

    nickname = payload.nickname.strip()
    try:
        user = await create_document(USERS, new_user(email, name=nickname, nickname=nickname))
    except DuplicateKeyError:
        # created by a concurrent request between the lookup and the insert
        response.status_code = status.HTTP_200_OK
        return {"message": "User exists", "user": await find_user(email)}

    logger.info("Created user %s", email)
    return {"message": "User created successfully", "user": user}


@router.post("/api/users/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def register_user(payload: RegisterUser, response: Response):
    if not (_present(payload.name) and _present(payload.email) and _present(payload.phone)):
        raise InvalidInput("Name, email, and phone are required")

    email = normalize_email(payload.email)
    name = payload.name.strip()
    phone = payload.phone.strip()

    existing = await find_user(email)
    if not existing:
        try:
            user = await create_document(USERS, new_user(email, name=name, nickname=first_name(name), phone=phone))
        except DuplicateKeyError:
            # registered by a concurrent request; update that record instead
            existing = await find_user(email)
        else:
            logger.info("Registered user %s", email)
            return {"message": "User registered successfully", "user": user}

    updates = {"name": name, "phone": phone}
    if not (existing or {}).get("nickname"):
        updates["nickname"] = first_name(name)
    user = await update_document(USERS, {"email": email}, updates)
    if user is None:
        raise NotFound("User not found")
    response.status_code = status.HTTP_200_OK
    return {"message": "User updated successfully", "user": user}


@router.get("/api/users", response_model=List[User])
async def list_users():
    return await get_documents(USERS, sort=NEWEST_FIRST)


@router.get("/api/debug/users", response_model=DebugUsers)
async def debug_users():
    users = await get_documents(
        USERS,
        projection={"email": 1, "nickname": 1, "name": 1, "created_at": 1},
        sort=NEWEST_FIRST,
    )
    return {"count": len(users), "users": users}


@router.get("/api/users/{email}", response_model=User)
async def get_user(email: str):
    user = await find_user(email)
    if not user:
        raise NotFound("User not found")
    return user


@router.patch("/api/users/{email}", response_model=UserEnvelope)
async def patch_user(email: str, payload: UserPatch):
    updates = payload.model_dump(exclude_none=True)
    if not updates:
        user = await find_user(email)
    else:
        user = await update_document(USERS, {"email": normalize_email(email)}, updates)
    if not user:
        raise NotFound("User not found")
    return {"message": "User updated successfully", "user": user}
