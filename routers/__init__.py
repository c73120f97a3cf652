# Crowdfunding Routers Module
# Exports all modular API routers

from routers.campaigns import router as campaigns_router
from routers.rewards import router as rewards_router
from routers.pledges import router as pledges_router
from routers.admin_campaigns import router as admin_campaigns_router
from routers.admin_payouts import router as admin_payouts_router

__all__ = [
    'campaigns_router',
    'rewards_router',
    'pledges_router',
    'admin_campaigns_router',
    'admin_payouts_router',
]
