# syshair_app/models/__init__.py
# -*- coding: utf-8 -*-
from .user import User
from .salon import Salon, Client, Appointment, Review
from .subscription import Subscription, SubscriptionPayment
from .notification import Notification, PushSubscription
from .goal import Goal


__all__ = [
    "User",
    "Salon",
    "Client",
    "Appointment",
    "Review",
    "Subscription",
    "SubscriptionPayment",
    "Notification",
    "PushSubscription",
    "Goal",
]
