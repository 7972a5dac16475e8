"""
wrenchd/blueprints/dashboard/routes.py

Dashboard statistics, computed on demand (no caching).
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from flask import Blueprint, jsonify

from ...extensions import db
from ...models import Customer, InventoryItem, Job, PurchaseOrder, Return, Vehicle
from ...pricing import ZERO, money_str, to_decimal
from ...stock import is_out_of_stock, low_stock_items

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")


def _count(model, *criteria) -> int:
    return db.session.query(db.func.count(model.id)).filter(*criteria).scalar() or 0


@dashboard_bp.get("/dashboard/stats")
def stats():
    today = datetime.now(timezone.utc).date()
    day_start = datetime.combine(today, time.min)
    day_end = day_start + timedelta(days=1)

    completed = Job.query.filter(Job.status == "completed").all()
    revenue = sum((to_decimal(job.total_amount) for job in completed), ZERO)

    inventory = InventoryItem.query.order_by(InventoryItem.quantity.asc()).all()
    low = low_stock_items(inventory)

    recent_jobs = Job.query.order_by(Job.created_at.desc()).limit(5).all()

    return jsonify(
        {
            "customersCount": _count(Customer),
            "vehiclesCount": _count(Vehicle),
            "inventoryCount": len(inventory),
            "jobsCount": _count(Job),
            "todayJobsCount": _count(Job, Job.scheduled_date >= day_start, Job.scheduled_date < day_end),
            "activeJobsCount": _count(Job, Job.status.in_(("scheduled", "in_progress"))),
            "completedJobsCount": len(completed),
            "lowStockCount": len(low),
            "outOfStockCount": sum(1 for item in inventory if is_out_of_stock(item)),
            "pendingPurchaseOrdersCount": _count(PurchaseOrder, PurchaseOrder.status == "pending"),
            "pendingReturnsCount": _count(Return, Return.status == "pending"),
            "totalRevenue": money_str(revenue),
            "recentJobs": [job.to_dict(with_details=False) for job in recent_jobs],
            "lowStockItems": [item.to_dict() for item in low[:5]],
        }
    )
