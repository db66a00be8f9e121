"""
URLs for librarian app
"""
from django.urls import path
from . import views

app_name = 'librarian'

urlpatterns = [
    # Dashboard
    path('', views.dashboard_view, name='dashboard'),

    # Books Management
    path('books/', views.books_list_view, name='books_list'),
    path('books/add/', views.book_add_view, name='book_add'),
    path('books/<int:pk>/edit/', views.book_edit_view, name='book_edit'),
    path('books/<int:pk>/delete/', views.book_delete_view, name='book_delete'),

    # Users Management
    path('users/', views.users_list_view, name='users_list'),
    path('users/add/', views.user_add_view, name='user_add'),
    path('users/<int:pk>/edit/', views.user_edit_view, name='user_edit'),
    path('users/<int:pk>/delete/', views.user_delete_view, name='user_delete'),

    # Transactions
    path('transactions/', views.transactions_list_view, name='transactions_list'),
    path('transactions/borrow/', views.transaction_borrow_view, name='transaction_borrow'),
    path('transactions/<int:pk>/edit/', views.transaction_edit_view, name='transaction_edit'),
    path('transactions/<int:pk>/return/', views.transaction_return_view, name='transaction_return'),
    path('transactions/<int:pk>/delete/', views.transaction_delete_view, name='transaction_delete'),
]
