"""Hardcoded default configuration served when the database cannot be read.

Values are already serialized the way they are stored: numeric settings are
integer strings, boolean settings are ``"true"``/``"false"`` and structured
settings are JSON text. ``scripts/seed_system_config.py`` writes the same
rows into an empty database.
"""
import json

DEFAULT_APP_NAME = "NLC-CMS"

_NOTIFICATION_SETTINGS = {
    "email": True,
    "sms": False,
    "push": False,
    "notify_on_status_change": True,
    "notify_on_assignment": True,
}

_COMPLAINT_PRIORITIES = ["LOW", "MEDIUM", "HIGH", "CRITICAL"]

_COMPLAINT_STATUSES = [
    "REGISTERED",
    "ASSIGNED",
    "IN_PROGRESS",
    "RESOLVED",
    "CLOSED",
    "REOPENED",
]

DEFAULT_SYSTEM_CONFIG: list[dict] = [
    # Application
    {"key": "APP_NAME", "value": DEFAULT_APP_NAME, "type": "app",
     "description": "Application display name used in emails and UI"},
    {"key": "APP_VERSION", "value": "1.0.3", "type": "app",
     "description": "Current application version"},
    {"key": "ORGANIZATION_NAME", "value": "Smart City Management", "type": "app",
     "description": "Organization name for branding"},
    {"key": "WEBSITE_URL", "value": "https://fix-smart-cms.gov.in", "type": "app",
     "description": "Organization website URL"},
    {"key": "SUPPORT_EMAIL", "value": "support@fix-smart-cms.gov.in", "type": "app",
     "description": "Support contact email address"},
    {"key": "ADMIN_EMAIL", "value": "admin@fix-smart-cms.gov.in", "type": "app",
     "description": "Administrator contact email address"},
    {"key": "APP_LOGO_URL", "value": "/logo.png", "type": "app",
     "description": "URL of the application logo"},
    {"key": "APP_LOGO_SIZE", "value": "medium", "type": "app",
     "description": "Logo size in the header (small, medium, large)"},
    {"key": "SYSTEM_VERSION", "value": "1.0.3", "type": "system",
     "description": "Deployed system version"},

    # Branding
    {"key": "PRIMARY_COLOR", "value": "#667eea", "type": "branding",
     "description": "Primary brand color for UI and emails"},
    {"key": "SECONDARY_COLOR", "value": "#764ba2", "type": "branding",
     "description": "Secondary brand color for accents"},

    # Email
    {"key": "EMAIL_FROM_NAME", "value": DEFAULT_APP_NAME, "type": "email",
     "description": "Display name for outgoing emails"},
    {"key": "EMAIL_FROM_ADDRESS", "value": "noreply@fix-smart-cms.gov.in", "type": "email",
     "description": "From email address for outgoing emails"},
    {"key": "EMAIL_REPLY_TO", "value": "support@fix-smart-cms.gov.in", "type": "email",
     "description": "Reply-to email address"},
    {"key": "EMAIL_FOOTER_TEXT", "value": "This is an automated message. Please do not reply to this email.",
     "type": "email", "description": "Standard footer text for emails"},

    # Complaint identifiers and handling
    {"key": "COMPLAINT_ID_PREFIX", "value": "KSC", "type": "complaint",
     "description": "Prefix for complaint IDs"},
    {"key": "COMPLAINT_ID_START_NUMBER", "value": "1", "type": "complaint",
     "description": "Starting number for complaint IDs"},
    {"key": "COMPLAINT_ID_LENGTH", "value": "4", "type": "complaint",
     "description": "Length of complaint ID number part"},
    {"key": "COMPLAINT_PHOTO_MAX_SIZE", "value": "5", "type": "complaint",
     "description": "Maximum size of a complaint photo in MB"},
    {"key": "COMPLAINT_PHOTO_MAX_COUNT", "value": "5", "type": "complaint",
     "description": "Maximum number of photos per complaint"},
    {"key": "DEFAULT_SLA_HOURS", "value": "48", "type": "complaint",
     "description": "Default SLA in hours for complaint resolution"},
    {"key": "AUTO_ASSIGN_COMPLAINTS", "value": "true", "type": "complaint",
     "description": "Automatically assign complaints to ward officers"},
    {"key": "AUTO_ASSIGN_ON_REOPEN", "value": "true", "type": "complaint",
     "description": "Reassign a reopened complaint to its last officer"},
    {"key": "AUTO_CLOSE_RESOLVED_COMPLAINTS", "value": "true", "type": "complaint",
     "description": "Close resolved complaints automatically"},
    {"key": "AUTO_CLOSE_DAYS", "value": "7", "type": "complaint",
     "description": "Days after resolution before a complaint is closed"},
    {"key": "COMPLAINT_PRIORITIES", "value": json.dumps(_COMPLAINT_PRIORITIES), "type": "complaint",
     "description": "Available complaint priorities"},
    {"key": "COMPLAINT_STATUSES", "value": json.dumps(_COMPLAINT_STATUSES), "type": "complaint",
     "description": "Available complaint statuses"},

    # Citizen access
    {"key": "CITIZEN_DAILY_COMPLAINT_LIMIT", "value": "5", "type": "citizen",
     "description": "Maximum complaints a citizen may file per day"},
    {"key": "CITIZEN_DAILY_COMPLAINT_LIMIT_ENABLED", "value": "true", "type": "citizen",
     "description": "Enforce the daily complaint limit"},
    {"key": "GUEST_COMPLAINT_ENABLED", "value": "true", "type": "citizen",
     "description": "Allow guests to file complaints"},
    {"key": "CITIZEN_REGISTRATION_ENABLED", "value": "true", "type": "citizen",
     "description": "Allow new citizen registrations"},
    {"key": "OTP_EXPIRY_MINUTES", "value": "5", "type": "citizen",
     "description": "Lifetime of a one-time password in minutes"},

    # Map and service area
    {"key": "MAP_SEARCH_PLACE", "value": "Kochi, Kerala, India", "type": "map",
     "description": "Place name used to bias map searches"},
    {"key": "MAP_COUNTRY_CODES", "value": "in", "type": "map",
     "description": "Comma-separated country codes for map searches"},
    {"key": "SERVICE_AREA_BOUNDARY", "value": json.dumps({"type": "Polygon", "coordinates": []}), "type": "map",
     "description": "GeoJSON polygon of the serviced area"},
    {"key": "SERVICE_AREA_VALIDATION_ENABLED", "value": "false", "type": "map",
     "description": "Reject complaints located outside the service area"},

    # Contact
    {"key": "CONTACT_HELPLINE", "value": "1800-XXX-XXXX", "type": "contact",
     "description": "Public helpline number"},
    {"key": "CONTACT_EMAIL", "value": "support@fix-smart-cms.gov.in", "type": "contact",
     "description": "Public contact email"},
    {"key": "CONTACT_OFFICE_HOURS", "value": "Monday - Friday: 9 AM - 6 PM", "type": "contact",
     "description": "Office hours shown to citizens"},
    {"key": "CONTACT_OFFICE_ADDRESS", "value": "Municipal Corporation Office", "type": "contact",
     "description": "Office address shown to citizens"},

    # System
    {"key": "SYSTEM_MAINTENANCE", "value": "false", "type": "system",
     "description": "Show the maintenance banner"},
    {"key": "MAINTENANCE_MODE", "value": "false", "type": "system",
     "description": "Enable maintenance mode"},
    {"key": "MAX_FILE_SIZE_MB", "value": "10", "type": "system",
     "description": "Maximum upload size in MB"},
    {"key": "MAX_FILE_UPLOAD_SIZE", "value": "10485760", "type": "system",
     "description": "Maximum file upload size in bytes"},
    {"key": "ALLOWED_FILE_TYPES", "value": "jpg,jpeg,png,pdf,doc,docx", "type": "system",
     "description": "Comma-separated list of allowed file extensions"},
    {"key": "DATE_TIME_FORMAT", "value": "DD/MM/YYYY HH:mm", "type": "system",
     "description": "Display format for dates and times"},
    {"key": "TIME_ZONE", "value": "Asia/Kolkata", "type": "system",
     "description": "Time zone used for display"},

    # Notifications
    {"key": "EMAIL_NOTIFICATIONS_ENABLED", "value": "true", "type": "notification",
     "description": "Send email notifications"},
    {"key": "SMS_NOTIFICATIONS_ENABLED", "value": "false", "type": "notification",
     "description": "Send SMS notifications"},
    {"key": "NOTIFICATION_SETTINGS", "value": json.dumps(_NOTIFICATION_SETTINGS), "type": "notification",
     "description": "Notification channel settings"},
]

DEFAULT_COMPLAINT_TYPES: list[dict] = [
    {"name": "Water Supply", "description": "Issues related to water supply, quality, and availability",
     "priority": "HIGH", "sla_hours": 24},
    {"name": "Electricity", "description": "Electrical issues including power outages and street lights",
     "priority": "HIGH", "sla_hours": 48},
    {"name": "Road Repair", "description": "Road maintenance, potholes, and infrastructure issues",
     "priority": "MEDIUM", "sla_hours": 72},
    {"name": "Waste Management", "description": "Garbage collection and waste disposal issues",
     "priority": "MEDIUM", "sla_hours": 48},
    {"name": "Sewage", "description": "Sewage system problems and drainage issues",
     "priority": "HIGH", "sla_hours": 24},
    {"name": "Street Light", "description": "Street lighting maintenance and repairs",
     "priority": "MEDIUM", "sla_hours": 72},
    {"name": "Public Transport", "description": "Public transportation related complaints",
     "priority": "LOW", "sla_hours": 96},
    {"name": "Parks & Gardens", "description": "Maintenance of public parks and green spaces",
     "priority": "LOW", "sla_hours": 120},
    {"name": "Noise Pollution", "description": "Noise related complaints and disturbances",
     "priority": "MEDIUM", "sla_hours": 48},
    {"name": "Stray Animals", "description": "Issues with stray animals and animal control",
     "priority": "MEDIUM", "sla_hours": 72},
]
