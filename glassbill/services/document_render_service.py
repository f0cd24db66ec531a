"""
Printable quotation and invoice documents.

Renders stored figures only; nothing is recomputed here. Output is HTML
bytes; PDF conversion (weasyprint or similar) is left to the client.
"""
import logging
import uuid
from decimal import Decimal
from html import escape
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.core.tenant_context import TenantContext
from glassbill.models.billing import Invoice, InvoiceItem, InvoiceType
from glassbill.models.quotation import Quotation, QuotationItem, BillingType
from glassbill.models.tenant import Shop
from glassbill.services.invoice_service import InvoiceService
from glassbill.services.quotation_service import QuotationService

logger = logging.getLogger(__name__)


def _money(value: Optional[Decimal]) -> str:
    return f"{(value or Decimal('0')):,.2f}"


def _text(value: Optional[str]) -> str:
    return escape(value or "")


class DocumentRenderService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def render_quotation(self, tenant: TenantContext, quotation_id: uuid.UUID) -> bytes:
        quotation = await QuotationService(self.db).get(tenant, quotation_id)
        shop = await self.db.get(Shop, tenant.shop_id)

        html = self._render(
            shop=shop,
            title="QUOTATION",
            number=quotation.quotation_number,
            document_date=str(quotation.quotation_date),
            extra_line=f"Valid until: {quotation.valid_until or ''} | Status: {quotation.status}",
            document=quotation,
            items=quotation.items,
        )
        logger.info(f"Rendered quotation {quotation.quotation_number}")
        return html.encode("utf-8")

    async def render_invoice(self, tenant: TenantContext, invoice_id: uuid.UUID) -> bytes:
        invoice = await InvoiceService(self.db).get(tenant, invoice_id)
        shop = await self.db.get(Shop, tenant.shop_id)

        title = "ADVANCE INVOICE" if invoice.invoice_type == InvoiceType.ADVANCE.value else "TAX INVOICE"
        if invoice.billing_type == BillingType.NON_GST.value:
            title = "INVOICE"

        html = self._render(
            shop=shop,
            title=title,
            number=invoice.invoice_number,
            document_date=str(invoice.invoice_date),
            extra_line=(
                f"Paid: Rs. {_money(invoice.paid_amount)} | "
                f"Due: Rs. {_money(invoice.due_amount)} | Status: {invoice.payment_status}"
            ),
            document=invoice,
            items=invoice.items,
        )
        logger.info(f"Rendered invoice {invoice.invoice_number}")
        return html.encode("utf-8")

    def _render(
        self,
        shop: Optional[Shop],
        title: str,
        number: str,
        document_date: str,
        extra_line: str,
        document: Union[Quotation, Invoice],
        items: List[Union[QuotationItem, InvoiceItem]],
    ) -> str:
        rows_html = ""
        for i, item in enumerate(items, 1):
            rows_html += f"""
            <tr>
                <td style="text-align: center;">{i}</td>
                <td>{_text(item.glass_type)} {_text(item.thickness)}</td>
                <td style="text-align: center;">{item.height} {item.height_unit} x {item.width} {item.width_unit}</td>
                <td style="text-align: center;">{item.quantity}</td>
                <td style="text-align: right;">{item.area}</td>
                <td style="text-align: right;">{_money(item.rate_per_sqft)}</td>
                <td style="text-align: right;">{_money(item.subtotal)}</td>
            </tr>
            """

        if document.is_interstate:
            tax_rows = f"<tr><td>IGST ({document.gst_percentage or 0}%)</td><td>{_money(document.igst)}</td></tr>"
        else:
            half = (document.gst_percentage or Decimal("0")) / 2
            tax_rows = (
                f"<tr><td>CGST ({half}%)</td><td>{_money(document.cgst)}</td></tr>"
                f"<tr><td>SGST ({half}%)</td><td>{_money(document.sgst)}</td></tr>"
            )
        if document.gst_percentage is None:
            tax_rows = ""

        shop_name = _text(shop.shop_name) if shop else ""
        shop_address = _text(shop.address) if shop else ""
        shop_gstin = _text(shop.gstin) if shop else ""

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <title>{title} {escape(number)}</title>
            <style>
                body {{ font-family: Arial, sans-serif; font-size: 12px; margin: 20px; }}
                .header {{ text-align: center; margin-bottom: 20px; }}
                .header h1 {{ margin: 5px 0; font-size: 18px; }}
                .section {{ margin: 15px 0; }}
                .data-table {{ width: 100%; border-collapse: collapse; margin-top: 10px; }}
                .data-table th, .data-table td {{ border: 1px solid #000; padding: 5px; }}
                .data-table th {{ background: #f0f0f0; }}
                .totals {{ margin-left: auto; width: 40%; }}
                .totals td:last-child {{ text-align: right; }}
            </style>
        </head>
        <body>
            <div class="header">
                <h1>{shop_name}</h1>
                <p>{shop_address}</p>
                <p>GSTIN: {shop_gstin}</p>
                <h2>{title}</h2>
            </div>

            <div class="section">
                <p><strong>No:</strong> {escape(number)} &nbsp; <strong>Date:</strong> {document_date}</p>
                <p>{escape(extra_line)}</p>
            </div>

            <div class="section">
                <p><strong>Bill To:</strong> {_text(document.customer_name)}</p>
                <p>{_text(document.customer_address)}</p>
                <p>Mobile: {_text(document.customer_mobile)} | GSTIN: {_text(document.customer_gstin)} | State: {_text(document.customer_state)}</p>
            </div>

            <table class="data-table">
                <thead>
                    <tr>
                        <th>Sr.</th>
                        <th>Glass</th>
                        <th>Size</th>
                        <th>Qty</th>
                        <th>Area (sq ft)</th>
                        <th>Rate (Rs.)</th>
                        <th>Amount (Rs.)</th>
                    </tr>
                </thead>
                <tbody>
                    {rows_html}
                </tbody>
            </table>

            <table class="totals">
                <tr><td>Subtotal</td><td>{_money(document.subtotal)}</td></tr>
                <tr><td>Installation</td><td>{_money(document.installation_charge)}</td></tr>
                <tr><td>Transport</td><td>{_money(document.transport_charge)}</td></tr>
                <tr><td>Discount</td><td>-{_money(document.discount)}</td></tr>
                {tax_rows}
                <tr><th>Grand Total</th><th>{_money(document.grand_total)}</th></tr>
            </table>
        </body>
        </html>
        """
