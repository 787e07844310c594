from django.urls import path
from . import views

app_name = 'specials'

urlpatterns = [
    path('', views.special_list, name='special-list'),
    path('search/', views.special_search, name='special-search'),
    path('claims/mine/', views.my_claims, name='my-claims'),
    path('claims/<str:claim_id>/cancel/', views.claim_cancel, name='claim-cancel'),
    path('claims/<str:claim_id>/redeem/', views.claim_redeem, name='claim-redeem'),
    path('<str:special_id>/', views.special_detail, name='special-detail'),
    path('<str:special_id>/claim/', views.special_claim, name='special-claim'),
]
