"""JSON API blueprints."""

from church_web.views.financial_years import financial_years_bp
from church_web.views.uploads import uploads_bp

__all__ = ["financial_years_bp", "uploads_bp"]
