from datetime import timedelta

from django.contrib import messages
from django.http import Http404
from django.shortcuts import redirect, render
from django.utils import timezone

from books.controllers import BookListController
from books.forms import BookForm
from loans.controllers import TransactionWorkflowController
from loans.forms import BorrowForm, TransactionForm
from loans.records import ACTIVE, OVERDUE, STATUS_CHOICES
from users.controllers import UserListController
from users.decorators import token_required
from users.forms import UserForm

from .forms import add_api_errors
from .listing import load_together

RECENT_COUNT = 5
DUE_SOON_DAYS = 3


def _notifier(request):
    def notify(level, message):
        messages.add_message(request, level, message)
    return notify


def _controller(request, controller_class):
    return controller_class(request.auth_session.client, notifier=_notifier(request))


def _restore_listing(controller, request):
    controller.restore(
        query=request.GET.get('search', '').strip(),
        sort=request.GET.get('sort'),
        direction=request.GET.get('dir'),
        page=request.GET.get('page', 1),
    )


def _listing_context(controller, **extra):
    context = {
        'controller': controller,
        'page_obj': controller.page_obj,
        'search_query': controller.query,
        'sort_key': controller.sort_key,
        'sort_direction': controller.sort_direction,
        'error': controller.error,
    }
    context.update(extra)
    return context


def _load_record(controller, pk):
    """
    Find one record in a freshly loaded collection

    The API has no single-record GET, so the list is the only way in.
    Returns None when the list could not be loaded.
    """
    if not controller.load():
        return None
    record = controller.record_for(pk)
    if record is None:
        raise Http404(f'No {controller.verbose_name} with id {pk}')
    return record


def _form_view(request, controller_class, form_class, template, list_url, pk=None, form_kwargs=None):
    """
    Shared add/edit flow

    Success redirects to the list, which reloads from the API. Failure
    re-renders the form with what was typed and the API's errors.
    """
    controller = _controller(request, controller_class)
    form_kwargs = form_kwargs or {}

    if pk is None:
        controller.open_create_form()
    else:
        record = _load_record(controller, pk)
        if record is None:
            return redirect(list_url)
        controller.open_edit_form(record)

    form = form_class(request.POST or None, initial=controller.form_values, **form_kwargs)

    if request.method == 'POST' and form.is_valid():
        if pk is None:
            saved = controller.create(form.cleaned_data, refresh=False)
        else:
            saved = controller.update(pk, form.cleaned_data, refresh=False)
        if saved:
            return redirect(list_url)
        add_api_errors(form, controller.field_errors)

    context = {
        'form': form,
        'action': 'add' if pk is None else 'edit',
        'controller': controller,
        'error': controller.error,
    }
    return render(request, template, context)


def _delete_view(request, controller_class, pk, list_url):
    """
    GET asks for confirmation; POST with confirm=yes deletes

    A POST without the confirmation goes back to the list quietly.
    """
    controller = _controller(request, controller_class)

    if request.method == 'POST':
        confirmed = request.POST.get('confirm') == 'yes'
        controller.remove(pk, confirmed=confirmed, refresh=False)
        return redirect(list_url)

    record = _load_record(controller, pk)
    if record is None:
        return redirect(list_url)

    context = {
        'record': record,
        'verbose_name': controller.verbose_name,
        'question': f'Are you sure you want to delete this {controller.verbose_name}?',
        'confirm_label': 'Delete',
        'cancel_url': list_url,
    }
    return render(request, 'librarian/confirm.html', context)


# ============= DASHBOARD =============

@token_required
def dashboard_view(request):
    """
    Summary cards, recent additions and loans due soon
    """
    notify = _notifier(request)
    client = request.auth_session.client
    books = BookListController(client, notifier=notify)
    users = UserListController(client, notifier=notify)
    transactions = TransactionWorkflowController(client, notifier=notify, books=books, users=users)

    # Independent lists, fetched together; each keeps its own error
    load_together(books, users, transactions)

    now = timezone.now()
    counts = transactions.counts(now=now)
    due_soon = sorted(
        (
            txn for txn in transactions.items
            if txn.status(now=now) == ACTIVE and txn.due_at is not None
            and txn.due_at <= now + timedelta(days=DUE_SOON_DAYS)
        ),
        key=lambda txn: txn.due_at,
    )

    context = {
        'books': books,
        'users': users,
        'transactions': transactions,
        'total_users': len(users.items),
        'total_books': len(books.items),
        'active_loans': counts[ACTIVE] + counts[OVERDUE],
        'overdue_loans_count': counts[OVERDUE],
        'recent_users': users.items[-RECENT_COUNT:][::-1],
        'recent_books': books.items[-RECENT_COUNT:][::-1],
        'upcoming_due': due_soon[:RECENT_COUNT],
        'book_stats': books.stats(),
    }
    return render(request, 'librarian/dashboard.html', context)


# ============= BOOKS MANAGEMENT =============

@token_required
def books_list_view(request):
    controller = _controller(request, BookListController)
    _restore_listing(controller, request)
    controller.load()

    context = _listing_context(controller, stats=controller.stats())
    return render(request, 'librarian/books_list.html', context)


@token_required
def book_add_view(request):
    return _form_view(request, BookListController, BookForm, 'librarian/book_form.html', 'librarian:books_list')


@token_required
def book_edit_view(request, pk):
    return _form_view(
        request, BookListController, BookForm, 'librarian/book_form.html', 'librarian:books_list', pk=pk,
    )


@token_required
def book_delete_view(request, pk):
    return _delete_view(request, BookListController, pk, 'librarian:books_list')


# ============= USERS MANAGEMENT =============

@token_required
def users_list_view(request):
    controller = _controller(request, UserListController)
    _restore_listing(controller, request)
    controller.load()

    context = _listing_context(controller, stats=controller.stats())
    return render(request, 'librarian/users_list.html', context)


@token_required
def user_add_view(request):
    return _form_view(request, UserListController, UserForm, 'librarian/user_form.html', 'librarian:users_list')


@token_required
def user_edit_view(request, pk):
    return _form_view(
        request, UserListController, UserForm, 'librarian/user_form.html', 'librarian:users_list',
        pk=pk, form_kwargs={'editing': True},
    )


@token_required
def user_delete_view(request, pk):
    return _delete_view(request, UserListController, pk, 'librarian:users_list')


# ============= TRANSACTIONS =============

@token_required
def transactions_list_view(request):
    controller = _controller(request, TransactionWorkflowController)
    _restore_listing(controller, request)
    controller.set_status_filter(request.GET.get('status', ''))
    controller.load()

    context = _listing_context(
        controller,
        status_filter=controller.status_filter,
        status_choices=STATUS_CHOICES,
        counts=controller.counts(),
    )
    return render(request, 'librarian/transactions_list.html', context)


@token_required
def transaction_borrow_view(request):
    """
    Lend a book; only titles with copies left are offered
    """
    controller = _controller(request, TransactionWorkflowController)
    controller.load_choices()
    controller.open_borrow_form()

    initial = {}
    if request.GET.get('book'):
        initial['book_id'] = request.GET['book']

    form = BorrowForm(
        request.POST or None,
        initial=initial,
        users=controller.users.items,
        books=controller.borrowable_books,
    )

    if request.method == 'POST' and form.is_valid():
        data = form.cleaned_data
        if controller.borrow(data['user_id'], data['book_id'], data['due_at'], refresh=False):
            return redirect('librarian:transactions_list')
        add_api_errors(form, controller.field_errors)

    context = {
        'form': form,
        'controller': controller,
        'error': controller.error or controller.books.error or controller.users.error,
        'no_books_available': not controller.borrowable_books,
    }
    return render(request, 'librarian/transaction_borrow.html', context)


@token_required
def transaction_edit_view(request, pk):
    return _form_view(
        request, TransactionWorkflowController, TransactionForm,
        'librarian/transaction_form.html', 'librarian:transactions_list', pk=pk,
    )


@token_required
def transaction_return_view(request, pk):
    """
    GET asks for confirmation; POST with confirm=yes returns the book
    """
    controller = _controller(request, TransactionWorkflowController)

    if request.method == 'POST':
        confirmed = request.POST.get('confirm') == 'yes'
        controller.return_book(pk, confirmed=confirmed, refresh=False)
        return redirect('librarian:transactions_list')

    record = _load_record(controller, pk)
    if record is None:
        return redirect('librarian:transactions_list')
    if record.returned_at is not None:
        messages.info(request, 'This book has already been returned.')
        return redirect('librarian:transactions_list')

    context = {
        'record': record,
        'verbose_name': 'transaction',
        'question': 'Are you sure you want to return this book?',
        'confirm_label': 'Return book',
        'cancel_url': 'librarian:transactions_list',
    }
    return render(request, 'librarian/confirm.html', context)


@token_required
def transaction_delete_view(request, pk):
    return _delete_view(request, TransactionWorkflowController, pk, 'librarian:transactions_list')
