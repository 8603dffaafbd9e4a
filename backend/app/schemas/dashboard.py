from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_patients: int
    prescriptions_today: int
    low_stock_items: int
    expiring_items: int
