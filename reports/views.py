from django.contrib import messages
from django.shortcuts import redirect, render
from django.utils import timezone

from books.controllers import BookListController
from librarian.listing import load_together
from loans.controllers import STATUS_FILTERS, TransactionWorkflowController
from loans.records import STATUS_CHOICES
from users.controllers import UserListController
from users.decorators import token_required

from .utils import (
    books_by_genre,
    excel_report,
    filter_transactions,
    format_date,
    pdf_report,
    transactions_by_status,
    users_per_month,
)


def _controllers(request):
    def notify(level, message):
        messages.add_message(request, level, message)

    client = request.auth_session.client
    books = BookListController(client, notifier=notify)
    users = UserListController(client, notifier=notify)
    transactions = TransactionWorkflowController(client, notifier=notify, books=books, users=users)
    return books, users, transactions


@token_required
def reports_dashboard(request):
    """
    Collection summaries and links to the exports
    """
    books, users, transactions = _controllers(request)
    load_together(books, users, transactions)

    now = timezone.now()
    context = {
        'page_title': 'Reports',
        'books': books,
        'users': users,
        'transactions': transactions,
        'book_stats': books.stats(),
        'user_stats': users.stats(now=now),
        'genres': books_by_genre(books.items),
        'status_counts': transactions_by_status(transactions.items, now=now),
        'overdue': transactions.overdue(now=now),
        'total_late_fees': transactions.total_late_fees(),
        'registrations': users_per_month(users.items),
        'status_choices': STATUS_CHOICES,
    }
    return render(request, 'reports/dashboard.html', context)


# ========== BOOK REPORT ==========

def _book_table(request):
    books, _, _ = _controllers(request)
    if not books.load():
        return None
    headers = ['No', 'Title', 'Author', 'ISBN', 'Genre', 'Total', 'Available']
    rows = [
        [idx, book.title, book.author, book.isbn, book.genre, book.total_copies, book.available_copies]
        for idx, book in enumerate(books.items, 1)
    ]
    stats = books.stats()
    summary = [
        ('Total titles:', stats['total_books']),
        ('Total copies:', stats['total_copies']),
        ('Available copies:', stats['available_copies']),
        ('Genres:', stats['unique_genres']),
    ]
    return headers, rows, summary


@token_required
def book_report_pdf(request):
    table = _book_table(request)
    if table is None:
        return redirect('reports:dashboard')
    headers, rows, summary = table
    return pdf_report('Book catalog report', headers, rows, summary, basename='book_report')


@token_required
def book_report_excel(request):
    table = _book_table(request)
    if table is None:
        return redirect('reports:dashboard')
    headers, rows, summary = table
    return excel_report('Book catalog report', headers, rows, summary, basename='book_report')


# ========== USER REPORT ==========

def _user_table(request):
    _, users, _ = _controllers(request)
    if not users.load():
        return None
    headers = ['No', 'Name', 'Email', 'Registered']
    rows = [
        [idx, user.name, user.email, format_date(user.created_at)]
        for idx, user in enumerate(users.items, 1)
    ]
    stats = users.stats()
    summary = [
        ('Total users:', stats['total_users']),
        ('Added in the last 7 days:', stats['recently_added']),
    ]
    return headers, rows, summary


@token_required
def user_report_pdf(request):
    table = _user_table(request)
    if table is None:
        return redirect('reports:dashboard')
    headers, rows, summary = table
    return pdf_report('User report', headers, rows, summary, basename='user_report')


@token_required
def user_report_excel(request):
    table = _user_table(request)
    if table is None:
        return redirect('reports:dashboard')
    headers, rows, summary = table
    return excel_report('User report', headers, rows, summary, basename='user_report')


# ========== TRANSACTION REPORT ==========

def _transaction_table(request):
    _, _, transactions = _controllers(request)
    if not transactions.load():
        return None

    # Get filter parameters
    status = request.GET.get('status', '')
    now = timezone.now()
    selected = filter_transactions(
        transactions.items,
        status_label=STATUS_FILTERS.get(status),
        start_date=request.GET.get('start_date'),
        end_date=request.GET.get('end_date'),
        now=now,
    )
    selected.sort(key=lambda txn: txn.borrowed_at or now, reverse=True)

    headers = ['No', 'User', 'Book', 'ISBN', 'Borrowed', 'Due', 'Returned', 'Status', 'Late fee']
    rows = [
        [
            idx,
            txn.user_name or f'#{txn.user_id}',
            txn.book_title or f'#{txn.book_id}',
            txn.book_isbn,
            format_date(txn.borrowed_at),
            format_date(txn.due_at),
            format_date(txn.returned_at),
            txn.status(now=now),
            f'{txn.late_fee:,.2f}' if txn.late_fee > 0 else '-',
        ]
        for idx, txn in enumerate(selected, 1)
    ]
    summary = [
        ('Total transactions:', len(selected)),
        ('Total late fees:', f'{sum(txn.late_fee for txn in selected):,.2f}'),
    ]
    return headers, rows, summary


@token_required
def transaction_report_pdf(request):
    table = _transaction_table(request)
    if table is None:
        return redirect('reports:dashboard')
    headers, rows, summary = table
    return pdf_report('Transaction report', headers, rows, summary, basename='transaction_report')


@token_required
def transaction_report_excel(request):
    table = _transaction_table(request)
    if table is None:
        return redirect('reports:dashboard')
    headers, rows, summary = table
    return excel_report('Transaction report', headers, rows, summary, basename='transaction_report')
