"""
Campaign Planner Service

Marketing campaign tracking microservice providing:
- Lifecycle status derivation and legacy status migration
- Quarter / month / date-range period matching
- Bulk duplication of brand+channel cohorts into new date windows
- Channel rollups, cross-channel KPIs and performance alerts

Port: 8260
"""

__version__ = "1.0.0"
__service__ = "campaign_planner_service"
