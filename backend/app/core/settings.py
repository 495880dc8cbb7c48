import os


class Settings:
    def __init__(self):
        self.app_name = "PEATS GST Invoicing"
        self.api_version = "1.0.0"
        self.environment = os.getenv("GST_ENVIRONMENT", "development")
        self.database_url = os.getenv("GST_DATABASE_URL", "sqlite:///./gst_invoicing.db")
        self.log_level = os.getenv("GST_LOG_LEVEL", "INFO")

        # Invoice numbering: PINV/YYYY/MM/DD + sequence
        self.invoice_prefix = os.getenv("GST_INVOICE_PREFIX", "PINV")
        self.invoice_sequence_base = int(os.getenv("GST_INVOICE_SEQUENCE_BASE", "980001"))
        self.number_retries = int(os.getenv("GST_NUMBER_RETRIES", "5"))
        self.due_days = int(os.getenv("GST_DUE_DAYS", "45"))

        self.company_name = os.getenv("GST_COMPANY_NAME", "ParthaSarthi Engineering and Training Services (PEATS)")
        self.company_email = os.getenv("GST_COMPANY_EMAIL", "parthasarthiconsultancy@gmail.com")


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings():
    global _settings_instance
    _settings_instance = None
