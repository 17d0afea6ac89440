from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, Boolean
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.enums import PaymentMethod, RecordStatus

class Expense(Base, AuditMixin):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    vendor_name = Column(String, nullable=True)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.CASH, nullable=False)
    reference_number = Column(String, nullable=True)
    receipt = Column(String(500), nullable=True)
    tax_deductible = Column(Boolean, default=False, nullable=False)
    reimbursable = Column(Boolean, default=False, nullable=False)
    status = Column(Enum(RecordStatus), default=RecordStatus.PENDING, nullable=False)

    category = relationship("ExpenseCategory")

    @property
    def category_name(self):
        return self.category.name if self.category else None
