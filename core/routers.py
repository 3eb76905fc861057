"""
URL mappings for the clinic API.

Resource paths keep the names the front-end already calls
(``consultas``, ``exames``, ``usuarios``).  Trailing slashes are
deliberately omitted.
"""
from django.urls import path, include

from .auth_views import login_view, refresh_view, register_view
from .views import health
from .views.appointments import appointments, appointment_detail
from .views.exams import exams, exam_detail
from .views.users import users_list, user_detail


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', refresh_view, name='refresh_view'),
    # Appointments
    path('api/consultas', appointments, name='appointments'),
    path('api/consultas/<int:pk>', appointment_detail, name='appointment_detail'),
    # Exams
    path('api/exames', exams, name='exams'),
    path('api/exames/<int:pk>', exam_detail, name='exam_detail'),
    # Users
    path('api/usuarios', users_list, name='users_list'),
    path('api/usuarios/<int:pk>', user_detail, name='user_detail'),
]
