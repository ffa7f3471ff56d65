from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'orders'

router = DefaultRouter()
router.register(r'design-requests', views.DesignRequestViewSet, basename='design-request')
router.register(r'orders', views.OrderViewSet, basename='order')

urlpatterns = [
    # GET  /api/design-requests/                - List design requests
    # GET  /api/design-requests/{id}/           - Get design request
    # POST /api/design-requests/{id}/approve/   - Approve and assemble order
    # POST /api/design-requests/{id}/reject/    - Reject design request

    # GET  /api/orders/                         - List orders
    # GET  /api/orders/{id}/                    - Get order with items
    # GET  /api/orders/{id}/payment_summary/    - Split payment progress
    # POST /api/orders/{id}/advance_stage/      - Advance production (staff)
    path('', include(router.urls)),
]
