# storefront/services/emails.py
from decimal import Decimal
from html import escape

from storefront.data.models.product import ProductModel
from storefront.domain.schemas import ReportSummary


def money(value) -> str:
    return f"${Decimal(value):,.2f}"


def low_stock_alert(product: ProductModel, threshold: int) -> tuple[str, str]:
    subject = f"Low Stock Alert: {product.name}"
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Low Stock Alert</title></head>
<body style="font-family: Arial, sans-serif; color: #333;">
  <h1 style="color: #dc3545;">Low Stock Alert</h1>
  <p>Hello Admin,</p>
  <p>A product in your inventory has fallen below the stock threshold.</p>
  <h2>{escape(product.name)}</h2>
  <p><strong>Current Stock:</strong> {product.stock_quantity} units</p>
  <p><strong>Stock Threshold:</strong> {threshold} units</p>
  <p><strong>Product Price:</strong> {money(product.price)}</p>
  <p>Please consider restocking this product to avoid running out of inventory.</p>
  <p style="font-size: 12px; color: #6c757d;">This is an automated notification from your ecommerce system.</p>
</body>
</html>
"""
    return subject, html


def daily_sales_report(summary: ReportSummary) -> tuple[str, str]:
    day = summary.report_date.isoformat()
    subject = f"Daily Sales Report - {day}"

    rows = "\n".join(
        f"      <tr><td>{escape(line.product_name)}</td>"
        f"<td style=\"text-align: right;\">{line.quantity_sold:,}</td>"
        f"<td style=\"text-align: right;\">{money(line.revenue)}</td></tr>"
        for line in summary.lines
    )

    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Daily Sales Report</title></head>
<body style="font-family: Arial, sans-serif; color: #333;">
  <h1>Daily Sales Report</h1>
  <p>{day}</p>
  <h2>Summary</h2>
  <p><strong>Total Revenue:</strong> {money(summary.total_revenue)}</p>
  <p><strong>Total Items Sold:</strong> {summary.total_items_sold:,}</p>
  <p><strong>Products Sold:</strong> {summary.product_count}</p>
  <h2>Product Sales Breakdown</h2>
  <table style="width: 100%; border-collapse: collapse;">
    <thead>
      <tr><th style="text-align: left;">Product</th><th style="text-align: right;">Quantity Sold</th><th style="text-align: right;">Revenue</th></tr>
    </thead>
    <tbody>
{rows}
    </tbody>
    <tfoot>
      <tr><td>Total</td><td style="text-align: right;">{summary.total_items_sold:,}</td><td style="text-align: right;">{money(summary.total_revenue)}</td></tr>
    </tfoot>
  </table>
  <p style="font-size: 12px; color: #6c757d;">This is an automated daily sales report from your ecommerce system.</p>
</body>
</html>
"""
    return subject, html
