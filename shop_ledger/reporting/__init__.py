"""Read-only reports over the sale log and inventory."""

from shop_ledger.reporting.reports import (
    DailySales,
    InventorySummary,
    MonthlySummary,
    ProductSales,
    SalesTotal,
    daily_sales,
    inventory_summary,
    monthly_summary,
    sales_by_user,
    top_products,
)

__all__ = [
    "DailySales",
    "InventorySummary",
    "MonthlySummary",
    "ProductSales",
    "SalesTotal",
    "daily_sales",
    "inventory_summary",
    "monthly_summary",
    "sales_by_user",
    "top_products",
]
