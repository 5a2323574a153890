"""
Leakwatch - Scan Router
Runs revenue leak scans and serves the PDF report
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from app.services import queries
from app.services.leak_scan_service import LeakScanService
from app.services.report_pdf import generate_report_pdf, report_filename
from app.services.shopify_auth_service import AdminSession
from app.services.shopify_graphql import QueryExecutor
from auth_middleware import get_admin_session, get_graphql_client


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["Scan"])


@router.post("")
async def run_scan(
    session: AdminSession = Depends(get_admin_session),
    executor: QueryExecutor = Depends(get_graphql_client),
):
    """
    Run one revenue leak scan.

    Always answers 200: a structural failure comes back as
    `{"scanned": false, "error": ...}` so the dashboard can offer a retry.
    """
    service = LeakScanService(executor, shop_domain=session.shop)
    result = await service.run_scan()
    return JSONResponse(content=result.to_response())


@router.get("")
async def download_report(
    mode: str = Query(..., description="Only 'pdf' is supported"),
    executor: QueryExecutor = Depends(get_graphql_client),
):
    """Render the one-page Revenue Leak Report for the authenticated shop"""
    if mode != "pdf":
        raise HTTPException(status_code=400, detail=f"Unsupported mode: {mode}")

    try:
        data = await executor.execute(queries.SHOP_QUERY)
        shop = data.get("shop") or {}
        shop_name = shop.get("name") or "Your Store"
        pdf = generate_report_pdf(shop_name, shop.get("myshopifyDomain"))
    except Exception as e:
        logger.error(f"❌ [Report] PDF generation failed: {e}")
        return Response(content="Failed to generate PDF", status_code=500, media_type="text/plain")

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{report_filename(shop_name)}"'},
    )
