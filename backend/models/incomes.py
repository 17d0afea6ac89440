from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.enums import PaymentMethod, RecordStatus

class Income(Base, AuditMixin):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("income_categories.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.CASH, nullable=False)
    reference_number = Column(String, nullable=True)
    receipt = Column(String(500), nullable=True)
    status = Column(Enum(RecordStatus), default=RecordStatus.PENDING, nullable=False)

    category = relationship("IncomeCategory")

    @property
    def category_name(self):
        return self.category.name if self.category else None
