# API routes
from labelkit.api.routes import health, labels, layouts, printing, raw_templates

__all__ = ["health", "labels", "layouts", "printing", "raw_templates"]
