from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from typing import List

from dependencies import get_current_admin, get_storage
import analytics
import schemas

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ========== PRODUCT MANAGEMENT ==========
@router.get("/products", response_model=List[schemas.Product])
async def admin_read_products(
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    """Every product, including ones hidden from the public catalog"""
    return await storage.list_products(include_unavailable=True)


# ========== DASHBOARD ENDPOINTS ==========
@router.get("/stats")
async def get_dashboard_stats(
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    orders = await storage.get_all_orders()
    products = await storage.list_products(include_unavailable=True)
    return analytics.dashboard_stats(orders, products)


# ========== ANALYTICS ENDPOINTS ==========
@router.get("/analytics/revenue")
async def get_revenue_summary(
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    return analytics.revenue_summary(await storage.get_all_orders())


@router.get("/analytics/sales")
async def get_sales_report(
    period: str = Query("monthly", pattern="^(daily|weekly|monthly|quarterly|yearly)$"),
    format: str = Query("json", pattern="^(json|csv)$"),
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    orders = await storage.get_all_orders()
    products = await storage.list_products(include_unavailable=True)
    report = analytics.sales_report(orders, products, period)

    if format == "csv":
        filename = f"sales_{period}_{report['start'][:10]}.csv"
        return PlainTextResponse(
            analytics.sales_report_csv(report),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return report
