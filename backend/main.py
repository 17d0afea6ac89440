from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

import config
from database import init_db
from utils.error_handlers import register_error_handlers
import auth
import routers.customers as customers
import routers.vendors as vendors
import routers.products as products
import routers.sales_orders as sales_orders
import routers.sales_invoices as sales_invoices
import routers.sales_returns as sales_returns
import routers.purchase_orders as purchase_orders
import routers.purchase_invoices as purchase_invoices
import routers.purchase_returns as purchase_returns
import routers.payments_in as payments_in
import routers.payments_out as payments_out
import routers.income as income
import routers.expenses as expenses
import routers.income_categories as income_categories
import routers.expense_categories as expense_categories
import routers.account_groups as account_groups
import routers.ledger as ledger
import routers.transactions as transactions
import routers.reports as reports
import routers.financial_reports as financial_reports
import routers.settings as settings
import routers.users as users


os.makedirs(config.LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(config.LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also output logs to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(config.LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
init_db()


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if config.ENABLE_SCHEDULER:
        from scheduler import scheduler
        scheduler.start()
        logger.info("End-of-day scheduler started")
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("End-of-day scheduler stopped")


app = FastAPI(lifespan=lifespan)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in config.CORS_ALLOWED_ORIGINS.split(',') if origin.strip()]

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="BizHub Books API",
        version="1.0.0",
        description="API for the BizHub Books bookkeeping app",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(customers.router)
app.include_router(vendors.router)
app.include_router(products.router)
app.include_router(sales_orders.router)
app.include_router(sales_invoices.router)
app.include_router(sales_returns.router)
app.include_router(purchase_orders.router)
app.include_router(purchase_invoices.router)
app.include_router(purchase_returns.router)
app.include_router(payments_in.router)
app.include_router(payments_out.router)
app.include_router(income.router)
app.include_router(expenses.router)
app.include_router(income_categories.router)
app.include_router(expense_categories.router)
app.include_router(account_groups.router)
app.include_router(ledger.router)
app.include_router(transactions.router)
app.include_router(reports.router)
app.include_router(financial_reports.router)
app.include_router(settings.router)

@app.get("/")
async def test_route():
    return {"message": "Welcome to the BizHub Books API!"}
