from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

import config
from database import get_db, reset_database
from schemas.app_config import AppConfigCreate, AppConfigUpdate, AppConfigOut, AppSettings, AppSettingsUpdate
from crud import app_config as crud_app_config
from models.users import User
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/settings", tags=["Settings"])
logger = logging.getLogger("settings")

@router.get("/", response_model=AppSettings)
def read_app_settings(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return crud_app_config.get_app_settings(db, user.id)

@router.patch("/", response_model=AppSettings)
def update_app_settings(settings: AppSettingsUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return crud_app_config.update_app_settings(
        db, settings.model_dump(exclude_unset=True), user.id, get_user_identifier(user)
    )

@router.post("/configurations/", response_model=AppConfigOut, status_code=status.HTTP_201_CREATED)
def create_config(config_in: AppConfigCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if crud_app_config.get_config(db, user.id, name=config_in.name):
        raise HTTPException(status_code=409, detail=f"Configuration '{config_in.name}' already exists")
    return crud_app_config.set_config(db, config_in.name, config_in.value, user.id, get_user_identifier(user))

@router.get("/configurations/", response_model=List[AppConfigOut])
def get_configs(name: Optional[str] = None, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    configs = crud_app_config.get_config(db, user.id, name=name)
    # Always return a list, even if empty
    return [configs] if name and configs else configs or []

@router.patch("/configurations/{name}/", response_model=AppConfigOut)
def update_config(name: str, config_in: AppConfigUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if not crud_app_config.get_config(db, user.id, name=name):
        raise HTTPException(status_code=404, detail="Configuration not found")
    if config_in.value is None:
        raise HTTPException(status_code=400, detail="value is required")
    return crud_app_config.set_config(db, name, config_in.value, user.id, get_user_identifier(user))

@router.delete("/configurations/{name}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_config(name: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if crud_app_config.delete_config(db, name, user.id) is None:
        raise HTTPException(status_code=404, detail="Configuration not found")
    return None

@router.post("/reset-database")
def reset_database_route(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """
    Drop and recreate every table.

    Development only: the route answers 404 unless ENABLE_DEBUG_ROUTES is set.
    All users, including the caller, are removed.
    """
    if not config.ENABLE_DEBUG_ROUTES:
        raise HTTPException(status_code=404, detail="Not Found")
    actor = get_user_identifier(user)
    bind = db.get_bind()
    # Release the request connection before the schema is dropped
    db.close()
    logger.warning(f"Database reset requested by {actor}")
    reset_database(bind=bind)
    return {"message": "Database reset successfully"}
