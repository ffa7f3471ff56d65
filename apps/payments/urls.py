from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'payments'

router = DefaultRouter()
router.register(r'contributions', views.PaymentContributionViewSet, basename='contribution')

urlpatterns = [
    # POST /api/payments/split/                - Start a split payment
    # POST /api/payments/bulk/                 - Manager pays one or more orders
    # POST /api/payments/webhook/              - Mercado Pago notifications
    # GET  /api/payments/contributions/        - List contributions
    # GET  /api/payments/contributions/{id}/   - Get contribution
    path('split/', views.split_payment, name='split-payment'),
    path('bulk/', views.bulk_payment, name='bulk-payment'),
    path('webhook/', views.mercadopago_webhook, name='mercadopago-webhook'),
    path('', include(router.urls)),
]
