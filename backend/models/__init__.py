from models.users import User
from models.companies import Company
from models.customers import Customer
from models.vendors import Vendor
from models.products import Product
from models.sales_orders import SalesOrder
from models.sales_order_items import SalesOrderItem
from models.purchase_orders import PurchaseOrder
from models.purchase_order_items import PurchaseOrderItem
from models.sales_invoices import SalesInvoice
from models.sales_invoice_items import SalesInvoiceItem
from models.purchase_invoices import PurchaseInvoice
from models.purchase_invoice_items import PurchaseInvoiceItem
from models.payments_in import PaymentIn, PaymentInItem
from models.payments_out import PaymentOut, PaymentOutItem
from models.sales_returns import SalesReturn, SalesReturnItem
from models.purchase_returns import PurchaseReturn, PurchaseReturnItem
from models.categories import IncomeCategory, ExpenseCategory
from models.incomes import Income
from models.expenses import Expense
from models.account_groups import AccountGroup
from models.ledger_entries import LedgerEntry
from models.transactions import Transaction
from models.app_config import AppConfig
from models.audit_log import AuditLog

__all__ = ['AccountGroup', 'AppConfig', 'AuditLog', 'Company', 'Customer', 'Expense', 'ExpenseCategory', 'Income', 'IncomeCategory', 'LedgerEntry', 'PaymentIn', 'PaymentInItem', 'PaymentOut', 'PaymentOutItem', 'Product', 'PurchaseInvoice', 'PurchaseInvoiceItem', 'PurchaseOrder', 'PurchaseOrderItem', 'PurchaseReturn', 'PurchaseReturnItem', 'SalesInvoice', 'SalesInvoiceItem', 'SalesOrder', 'SalesOrderItem', 'SalesReturn', 'SalesReturnItem', 'Transaction', 'User', 'Vendor',]
