from flask import (Blueprint, abort, current_app, flash, redirect, render_template, request,
                   send_from_directory, url_for)

from request_context import admin_required, with_context
from database import page_params, paginate
from models import posts, tags

posts_bp = Blueprint('posts', __name__)


# --- HELPER FUNCTIONS ---

def _find_or_404(ctx, pid):
    post = posts.get_post(ctx.db, pid)
    if post is None:
        abort(404)
    return post


def _form_values(post=None):
    """What the form should show again after a failed submit."""
    values = dict(post or {})
    values.update({key: request.form.get(key, '') for key in ('title', 'content', 'tag')})
    return values


# --- MAIN POST ROUTES ---

@posts_bp.route('/posts/', methods=['GET'])
@with_context
def index(ctx):
    """Newest posts first. Params "page" and "per_page" control pagination."""
    page, per_page = page_params(request.args)
    pagination = paginate(ctx.db, posts.list_posts_query(), (), page, per_page)
    return render_template('posts/index.html', posts=pagination.items, pagination=pagination)


@posts_bp.route('/posts/create', methods=['GET'])
@admin_required
def create_get():
    return render_template('posts/create.html', post={}, errors={})


@posts_bp.route('/posts/create', methods=['POST'])
@admin_required
@with_context
def create_post(ctx):
    post, errors = posts.create_post(ctx.db, ctx.uploads, ctx.user['id'], request.form,
                                     request.files.get('image'), current_app.config['ALLOWED_EXTENSIONS'])
    if errors:
        return render_template('posts/create.html', post=_form_values(), errors=errors), 422

    flash("New post added successfully", 'success')
    return redirect(url_for('posts.index'))


@posts_bp.route('/posts/edit/<int:pid>', methods=['GET'])
@admin_required
@with_context
def edit_get(ctx, pid):
    post = _find_or_404(ctx, pid)
    post['tag'] = post['tag_name'] or ''
    return render_template('posts/edit.html', post=post, errors={})


@posts_bp.route('/posts/edit/<int:pid>', methods=['POST'])
@admin_required
@with_context
def edit_post(ctx, pid):
    post = _find_or_404(ctx, pid)
    errors = posts.update_post(ctx.db, ctx.uploads, post, request.form,
                               request.files.get('image'), current_app.config['ALLOWED_EXTENSIONS'])
    if errors:
        return render_template('posts/edit.html', post=_form_values(post), errors=errors), 422

    flash("Post was updated successfully.", 'success')
    return redirect(url_for('posts.detail', pid=pid))


@posts_bp.route('/posts/delete/<int:pid>', methods=['GET'])
@admin_required
@with_context
def delete(ctx, pid):
    post = _find_or_404(ctx, pid)
    posts.delete_post(ctx.db, ctx.uploads, post)
    flash("Post was successfully deleted.", 'success')
    return redirect(url_for('posts.index'))


@posts_bp.route('/posts/detail/<int:pid>', methods=['GET'])
@with_context
def detail(ctx, pid):
    post = _find_or_404(ctx, pid)
    comments = posts.comments_for_post(ctx.db, pid)
    tag = tags.tag_for_post(ctx.db, pid)
    return render_template('posts/detail.html', post=post, tag=tag, comments=comments,
                           comment={}, errors={})


@posts_bp.route('/uploads/<path:name>', methods=['GET'])
def uploaded_file(name):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], name)
