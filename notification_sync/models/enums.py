from enum import Enum


class NotificationType(str, Enum):
    MESSAGE = 'message'
    PROJECT_LIKE = 'project_like'
    PROJECT_COMMENT = 'project_comment'
    JOB_APPLICATION = 'job_application'
    PAYMENT_SUCCESS = 'payment_success'
    PAYMENT_FAILED = 'payment_failed'
    SUBSCRIPTION_EXPIRED = 'subscription_expired'
    SYSTEM_ANNOUNCEMENT = 'system_announcement'
    PROJECT_APPROVED = 'project_approved'
    PROJECT_REJECTED = 'project_rejected'
    PROFILE_VERIFIED = 'profile_verified'


class NotificationPriority(str, Enum):
    LOW = 'low'
    NORMAL = 'normal'
    HIGH = 'high'
    URGENT = 'urgent'


class ConnectionState(str, Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    ERROR = 'error'


class NotificationView(str, Enum):
    ALL = 'all'
    UNREAD = 'unread'
