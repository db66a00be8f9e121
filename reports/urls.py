"""
URLs for reports app
"""
from django.urls import path
from . import views

app_name = 'reports'

urlpatterns = [
    # Dashboard
    path('', views.reports_dashboard, name='dashboard'),

    # Book report
    path('books/pdf/', views.book_report_pdf, name='book_pdf'),
    path('books/excel/', views.book_report_excel, name='book_excel'),

    # User report
    path('users/pdf/', views.user_report_pdf, name='user_pdf'),
    path('users/excel/', views.user_report_excel, name='user_excel'),

    # Transaction report
    path('transactions/pdf/', views.transaction_report_pdf, name='transaction_pdf'),
    path('transactions/excel/', views.transaction_report_excel, name='transaction_excel'),
]
