"""
Analytics Aggregator

Dashboard numbers for the admin panel:
    - admin_stats: revenue and collection sizes
    - order_stats: ordered items per menu category, computed in the store
      by joining payments to menu items
"""

import logging

from app.services.resources import MENU, PAYMENTS, USERS
from app.services.store import BaseDocumentStore

logger = logging.getLogger(__name__)


REVENUE_PIPELINE = [
    {"$group": {"_id": None, "revenue": {"$sum": "$price"}}},
]

ORDER_STATS_PIPELINE = [
    {
        "$lookup": {
            "from": MENU,
            "localField": "menuItems",
            "foreignField": "_id",
            "as": "menuItemsData",
        }
    },
    {"$unwind": "$menuItemsData"},
    {
        "$group": {
            "_id": "$menuItemsData.category",
            "count": {"$sum": 1},
            "totalPrice": {"$sum": "$menuItemsData.price"},
        }
    },
]


class AnalyticsAggregator:

    def __init__(self, store: BaseDocumentStore):
        self.store = store

    async def admin_stats(self) -> dict:
        """
        Revenue plus user, product and order counts.

        Counts are the store's estimated counts and may lag concurrent writes.
        """
        users = await self.store.estimated_document_count(USERS)
        products = await self.store.estimated_document_count(MENU)
        orders = await self.store.estimated_document_count(PAYMENTS)

        groups = await self.store.aggregate(PAYMENTS, REVENUE_PIPELINE)
        revenue = round(groups[0]["revenue"], 2) if groups else 0

        return {
            "revenue": revenue,
            "users": users,
            "products": products,
            "orders": orders,
        }

    async def order_stats(self) -> list[dict]:
        """
        One row per category that appears in at least one payment.

        Row order is whatever the store produces and carries no meaning.
        """
        groups = await self.store.aggregate(PAYMENTS, ORDER_STATS_PIPELINE)
        logger.debug(f"Order stats aggregation result: {groups}")

        return [
            {
                "category": group["_id"],
                "count": group["count"],
                "totalPrice": round(group["totalPrice"], 2),
            }
            for group in groups
        ]
