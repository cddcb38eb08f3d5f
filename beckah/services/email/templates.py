"""
HTML email templates.

Each builder returns an EmailContent (subject + html). Every value coming
from the database is HTML-escaped.
"""
from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import List, Optional

PLACEHOLDER_IMAGE = "https://via.placeholder.com/80"

BASE_STYLES = """
<style>
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; margin: 0; padding: 0; background-color: #f5f5f5; }
  .container { max-width: 600px; margin: 0 auto; background-color: #ffffff; }
  .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 40px 20px; text-align: center; }
  .header h1 { color: #ffffff; margin: 0; font-size: 28px; }
  .content { padding: 40px 30px; }
  .button { display: inline-block; padding: 14px 32px; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: #ffffff; text-decoration: none; border-radius: 6px; font-weight: 600; margin: 20px 0; }
  .footer { background-color: #f8f9fa; padding: 30px; text-align: center; color: #6c757d; font-size: 14px; }
  .order-details { background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0; }
  .product-item { display: flex; align-items: center; padding: 15px 0; border-bottom: 1px solid #dee2e6; }
  .product-image { width: 80px; height: 80px; object-fit: cover; border-radius: 6px; margin-right: 15px; }
  .status-badge { display: inline-block; padding: 12px 24px; color: white; border-radius: 8px; font-weight: 600; margin: 20px 0; }
  .total { font-size: 20px; font-weight: bold; color: #667eea; margin-top: 15px; }
  .unsubscribe { color: #6c757d; font-size: 12px; margin-top: 20px; }
  .unsubscribe a { color: #6c757d; }
</style>
"""


@dataclass
class EmailContent:
    subject: str
    html: str


@dataclass
class EmailItem:
    title: str
    quantity: int = 1
    price: Optional[float] = None
    image_url: str = PLACEHOLDER_IMAGE


def money(value: Optional[float]) -> str:
    return f"{float(value or 0):.2f}"


def _layout(heading: str, body: str, site_url: str, footer_note: str = "") -> str:
    note = f"<p>{footer_note}</p>" if footer_note else ""
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  {BASE_STYLES}
</head>
<body>
  <div class="container">
    <div class="header"><h1>{heading}</h1></div>
    <div class="content">{body}</div>
    <div class="footer">
      <p><strong>Beckah Marketplace</strong></p>
      {note}
      <div class="unsubscribe"><p><a href="{escape(site_url)}/settings">Manage email preferences</a></p></div>
    </div>
  </div>
</body>
</html>"""


def _button(href: str, label: str) -> str:
    return f'<div style="text-align: center; margin: 30px 0;"><a href="{escape(href)}" class="button">{label}</a></div>'


def _items(items: List[EmailItem], with_price: bool = True) -> str:
    rows = []
    for item in items:
        price = f" × ${money(item.price)}" if with_price and item.price is not None else ""
        rows.append(
            '<div class="product-item">'
            f'<img src="{escape(item.image_url)}" alt="{escape(item.title)}" class="product-image">'
            f"<div><div><strong>{escape(item.title)}</strong></div>"
            f'<div style="color: #6c757d;">Quantity: {item.quantity}{price}</div></div>'
            "</div>"
        )
    return "".join(rows)


# ==========================================
# Account
# ==========================================

def welcome(full_name: Optional[str], site_url: str) -> EmailContent:
    body = f"""
      <h2>Hi {escape(full_name or 'there')}! 👋</h2>
      <p>We're thrilled to have you join our marketplace community!</p>
      <p>Every item donated or sold here helps someone in need.</p>
      <ul>
        <li><strong>Shop</strong> from a curated selection of products</li>
        <li><strong>Donate or sell</strong> your own items</li>
        <li><strong>Track</strong> your orders in real-time</li>
      </ul>
      {_button(site_url, "Start Shopping")}
    """
    return EmailContent(
        subject="Welcome to Beckah Marketplace! 🎉",
        html=_layout("Welcome to Beckah!", body, site_url, "Your trusted marketplace for quality products"),
    )


# ==========================================
# Orders
# ==========================================

def order_confirmation(
    order_id: str,
    customer_name: str,
    items: List[EmailItem],
    total_amount: float,
    site_url: str,
) -> EmailContent:
    body = f"""
      <h2>Thank you for your order, {escape(customer_name)}!</h2>
      <p>We've received your order and will notify you when it ships.</p>
      <div class="order-details">
        <h3>Order #{escape(str(order_id))}</h3>
        {_items(items)}
        <div class="total">Total: ${money(total_amount)}</div>
      </div>
      {_button(f"{site_url}/buyer-orders", "View Order")}
    """
    return EmailContent(
        subject=f"Order Confirmed - #{order_id}",
        html=_layout("✅ Order Confirmed", body, site_url, "Thank you for shopping with us!"),
    )


ORDER_STATUS_MESSAGES = {
    "processing": ("Order is Being Processed", "⚙️", "Good news! We've started processing your order.", "#3b82f6"),
    "completed": ("Order Completed", "✅", "Your order has been completed!", "#10b981"),
    "cancelled": ("Order Cancelled", "❌", "Your order has been cancelled.", "#ef4444"),
}

PAYMENT_STATUS_MESSAGES = {
    "paid": ("Payment Confirmed", "✅", "Your payment has been confirmed!", "#10b981"),
    "failed": ("Payment Failed", "❌", "Payment could not be processed.", "#ef4444"),
    "pending": ("Payment Pending", "⏳", "Your payment is being processed.", "#f59e0b"),
}


def order_status_update(
    order_id: str,
    customer_name: str,
    new_status: str,
    items: List[EmailItem],
    total_amount: float,
    site_url: str,
) -> EmailContent:
    title, emoji, message, color = ORDER_STATUS_MESSAGES.get(
        new_status,
        ("Order Status Updated", "📦", "Your order status has been updated.", "#3b82f6"),
    )
    note = ""
    if new_status == "cancelled":
        note = '<p style="color: #ef4444;"><strong>Note:</strong> If you have any questions about this cancellation, please contact our support team.</p>'
    body = f"""
      <h2>{message}</h2>
      <p>Hi {escape(customer_name)},</p>
      <div class="order-details">
        <p><strong>Order ID:</strong> #{escape(str(order_id))}</p>
        <p><strong>Total Amount:</strong> ${money(total_amount)}</p>
        <div class="status-badge" style="background-color: {color};">Status: {escape(new_status.upper())}</div>
        {_items(items)}
      </div>
      {_button(f"{site_url}/buyer-orders", "View Order Details")}
      {note}
    """
    label = {"completed": "Completed", "cancelled": "Cancelled"}.get(new_status, "Update")
    return EmailContent(
        subject=f"Order {label} - #{order_id}",
        html=_layout(f"{emoji} {title}", body, site_url),
    )


def payment_status_update(
    order_id: str,
    customer_name: str,
    new_payment_status: str,
    total_amount: float,
    site_url: str,
) -> EmailContent:
    title, emoji, message, color = PAYMENT_STATUS_MESSAGES.get(
        new_payment_status, PAYMENT_STATUS_MESSAGES["pending"]
    )
    note = ""
    if new_payment_status == "failed":
        note = '<p style="color: #ef4444;"><strong>Action Required:</strong> Please update your payment method to complete your order.</p>'
    body = f"""
      <h2>{message}</h2>
      <p>Hi {escape(customer_name)},</p>
      <div class="order-details">
        <p><strong>Order ID:</strong> #{escape(str(order_id))}</p>
        <p><strong>Amount:</strong> ${money(total_amount)}</p>
        <div class="status-badge" style="background-color: {color};">Payment Status: {escape(new_payment_status.upper())}</div>
      </div>
      {_button(f"{site_url}/buyer-orders", "View Order")}
      {note}
    """
    label = {"paid": "Confirmed", "failed": "Failed"}.get(new_payment_status, "Update")
    return EmailContent(
        subject=f"Payment {label} - Order #{order_id}",
        html=_layout(f"{emoji} {title}", body, site_url),
    )


def shipping_notification(
    order_id: str,
    customer_name: str,
    tracking_number: str,
    shipping_company: str,
    items: List[EmailItem],
    site_url: str,
) -> EmailContent:
    body = f"""
      <h2>Good news, {escape(customer_name)}!</h2>
      <p>Your order is on its way.</p>
      <div class="order-details">
        <p><strong>Carrier:</strong> {escape(shipping_company)}</p>
        <p><strong>Tracking Number:</strong> {escape(tracking_number)}</p>
        {_items(items, with_price=False)}
      </div>
      {_button(f"{site_url}/buyer-orders", "Track Order")}
    """
    return EmailContent(
        subject=f"Your Order Has Shipped! - #{order_id}",
        html=_layout("🚚 Your Order Has Shipped", body, site_url),
    )


def delivery_confirmation(order_id: str, customer_name: str, site_url: str) -> EmailContent:
    body = f"""
      <h2>Your order has been delivered, {escape(customer_name)}!</h2>
      <p>We hope you love your purchase. Tell us about your experience.</p>
      {_button(f"{site_url}/buyer-orders", "Leave a Review")}
    """
    return EmailContent(
        subject=f"Order Delivered! How was your experience? - #{order_id}",
        html=_layout("📦 Order Delivered", body, site_url),
    )


def review_request(customer_name: str, product: EmailItem, product_id: str, site_url: str) -> EmailContent:
    body = f"""
      <h2>Hi {escape(customer_name)},</h2>
      <p>How are you enjoying <strong>{escape(product.title)}</strong>?</p>
      {_items([product], with_price=False)}
      {_button(f"{site_url}/product/{product_id}", "Write a Review")}
    """
    return EmailContent(
        subject="How was your recent purchase? ⭐",
        html=_layout("⭐ Share Your Experience", body, site_url),
    )


def abandoned_cart(
    customer_name: str,
    items: List[EmailItem],
    total_amount: float,
    site_url: str,
) -> EmailContent:
    body = f"""
      <h2>Hi {escape(customer_name)},</h2>
      <p>You left {len(items)} item(s) in your cart.</p>
      <div class="order-details">
        {_items(items)}
        <div class="total">Total: ${money(total_amount)}</div>
      </div>
      {_button(f"{site_url}/checkout", "Complete Your Purchase")}
    """
    return EmailContent(
        subject="You left items in your cart! 🛒",
        html=_layout("🛒 Your Cart Is Waiting", body, site_url),
    )


# ==========================================
# Product submissions
# ==========================================

def product_approved(
    seller_name: str,
    product_title: str,
    final_price: float,
    approved_date: str,
    admin_notes: str,
    product_id: Optional[str],
    site_url: str,
) -> EmailContent:
    notes = f"<p><strong>Notes from our team:</strong> {escape(admin_notes)}</p>" if admin_notes else ""
    link = f"{site_url}/product/{product_id}" if product_id else f"{site_url}/my-products"
    body = f"""
      <h2>Congratulations, {escape(seller_name)}!</h2>
      <p>Your product <strong>{escape(product_title)}</strong> was approved on {escape(approved_date)}.</p>
      <div class="order-details"><p><strong>Final Price:</strong> ${money(final_price)}</p></div>
      {notes}
      {_button(link, "View Your Product")}
    """
    return EmailContent(
        subject=f"Product Approved - {product_title}",
        html=_layout("🎉 Product Approved", body, site_url),
    )


def product_rejected(
    seller_name: str,
    product_title: str,
    submitted_date: str,
    reviewed_date: str,
    rejection_reason: str,
    site_url: str,
) -> EmailContent:
    body = f"""
      <h2>Hi {escape(seller_name)},</h2>
      <p>Thank you for submitting <strong>{escape(product_title)}</strong> on {escape(submitted_date)}.</p>
      <p>After review on {escape(reviewed_date)}, we could not approve it.</p>
      <div class="order-details"><p><strong>Reason:</strong> {escape(rejection_reason)}</p></div>
      {_button(f"{site_url}/submit-product", "Submit Another Product")}
    """
    return EmailContent(
        subject=f"Product Submission Update - {product_title}",
        html=_layout("Product Submission Update", body, site_url),
    )


SUBMISSION_TYPE_LABELS = {
    "donation": "Donation",
    "symbolic_sale": "Symbolic Sale",
    "public_sale": "Public Sale",
}


def submission_to_admin(
    submission_id: str,
    product_title: str,
    seller_name: str,
    seller_email: str,
    price: float,
    submission_type: str,
    description: str,
    submitted_date: str,
    site_url: str,
) -> EmailContent:
    label = SUBMISSION_TYPE_LABELS.get(submission_type, submission_type or "")
    body = f"""
      <h2>New product submission</h2>
      <div class="order-details">
        <p><strong>Product:</strong> {escape(product_title)}</p>
        <p><strong>Seller:</strong> {escape(seller_name)} ({escape(seller_email)})</p>
        <p><strong>Type:</strong> {escape(label)}</p>
        <p><strong>Price:</strong> ${money(price)}</p>
        <p><strong>Submitted:</strong> {escape(submitted_date)}</p>
        <p>{escape(description)}</p>
      </div>
      {_button(f"{site_url}/admin/submissions", "Review Submission")}
    """
    return EmailContent(
        subject=f"New Product Submission - {product_title}",
        html=_layout("📝 New Submission", body, site_url, f"Submission #{escape(str(submission_id))}"),
    )


def new_order_to_seller(
    seller_name: str,
    order_id: str,
    order_date: str,
    customer_name: str,
    item: EmailItem,
    seller_earnings: float,
    shipping_address: str,
    site_url: str,
) -> EmailContent:
    body = f"""
      <h2>Great news, {escape(seller_name)}!</h2>
      <p>{escape(customer_name)} ordered your product on {escape(order_date)}.</p>
      <div class="order-details">
        {_items([item])}
        <p><strong>Your earnings:</strong> ${money(seller_earnings)}</p>
        <p><strong>Ship to:</strong> {escape(shipping_address)}</p>
      </div>
      {_button(f"{site_url}/seller-orders", "View Order")}
    """
    return EmailContent(
        subject=f"New Order for Your Product - #{order_id}",
        html=_layout("🛍️ New Order", body, site_url),
    )
