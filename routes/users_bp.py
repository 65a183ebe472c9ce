from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from request_context import admin_required, deny, with_context
from database import page_params, paginate
from models import users

users_bp = Blueprint('users', __name__)


def _find_or_404(ctx, user_id):
    user = users.get_user(ctx.db, user_id)
    if user is None:
        abort(404)
    return user


def _may_edit(ctx, user):
    return ctx.is_authenticated and (ctx.user['id'] == user['id'] or ctx.is_admin)


@users_bp.route('/', methods=['GET'])
@admin_required
@with_context
def index(ctx):
    """Admin-only list of accounts. Params "page" and "per_page" control pagination."""
    page, per_page = page_params(request.args)
    pagination = paginate(ctx.db, users.list_users_query(), (), page, per_page)
    return render_template('users/index.html', users=pagination.items, pagination=pagination)


@users_bp.route('/new', methods=['GET'])
def new():
    return render_template('users/new.html', user={}, errors={})


@users_bp.route('/', methods=['POST'])
@with_context
def create(ctx):
    user, errors = users.create_user(ctx.db, request.form)
    if errors:
        form = {k: v for k, v in request.form.items() if not k.startswith('password')}
        return render_template('users/new.html', user=form, errors=errors), 422

    flash("User was created successfully", 'success')
    return redirect(url_for('auth.login'))


@users_bp.route('/<int:user_id>', methods=['GET'])
@with_context
def show(ctx, user_id):
    user = _find_or_404(ctx, user_id)
    return render_template('users/show.html', user=user)


@users_bp.route('/<int:user_id>/edit', methods=['GET'])
@with_context
def edit(ctx, user_id):
    user = _find_or_404(ctx, user_id)
    if not _may_edit(ctx, user):
        return deny()
    return render_template('users/edit.html', user=user, errors={})


@users_bp.route('/<int:user_id>', methods=['PUT', 'POST'])
@with_context
def update(ctx, user_id):
    # HTML forms can only POST, a hidden _method field stands in for DELETE
    if request.form.get('_method', '').upper() == 'DELETE':
        return destroy(user_id)

    user = _find_or_404(ctx, user_id)
    if not _may_edit(ctx, user):
        return deny()

    errors = users.update_user(ctx.db, user, request.form, allow_admin=ctx.is_admin)
    if errors:
        return render_template('users/edit.html', user={**user, **request.form.to_dict()}, errors=errors), 422

    flash("User was updated successfully", 'success')
    return redirect(url_for('users.edit', user_id=user_id))


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@admin_required
@with_context
def destroy(ctx, user_id):
    user = _find_or_404(ctx, user_id)
    users.delete_user(ctx.db, user['id'])
    flash("User was destroyed successfully", 'success')
    return redirect(url_for('users.index'))
