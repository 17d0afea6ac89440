from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from crud import transactions as crud_transactions
from models.transactions import TransactionType
from models.users import User
from schemas.transactions import Transaction, TransactionTypeSummary
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/transactions", tags=["Transactions"])

@router.get("/", response_model=List[Transaction])
def read_transactions(
    transaction_type: Optional[TransactionType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Unified activity feed. Outflows carry negative amounts."""
    return crud_transactions.get_transactions(
        db, user.id, transaction_type=transaction_type, start_date=start_date, end_date=end_date,
        search=search, skip=skip, limit=limit
    )

@router.get("/summary", response_model=List[TransactionTypeSummary])
def read_transaction_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_transactions.get_transaction_summary_by_type(db, user.id, start_date, end_date)

@router.get("/reference/{transaction_type}/{reference_id}", response_model=List[Transaction])
def read_transactions_by_reference(
    transaction_type: TransactionType,
    reference_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_transactions.get_transactions_by_reference(db, user.id, transaction_type, reference_id)
