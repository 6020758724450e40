from django.urls import path

from geoverify import views

urlpatterns = [
    path('geolocation', views.GeolocationAPIView.as_view(), name='geolocation-api'),
    path('location/verify', views.LocationVerifyAPIView.as_view(), name='location-verify-api'),
    path('health', views.HealthAPIView.as_view(), name='health-api'),
]
