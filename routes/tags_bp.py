from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from request_context import admin_required, with_context
from database import page_params, paginate
from models import posts, tags
from form_validators import validate

tags_bp = Blueprint('tags', __name__)


@tags_bp.route('/', methods=['GET'])
@with_context
def index(ctx):
    page, per_page = page_params(request.args)
    pagination = paginate(ctx.db, 'SELECT * FROM tags ORDER BY name', (), page, per_page)
    return render_template('tags/list.html', tags=pagination.items, pagination=pagination)


@tags_bp.route('/create', methods=['GET'])
@admin_required
def create_get():
    return render_template('tags/create.html', tag={}, errors={})


@tags_bp.route('/create', methods=['POST'])
@admin_required
@with_context
def create_post(ctx):
    raw = request.form.get('name', '')
    name = tags.normalize(raw)
    errors = validate(tags.check_tag('name', raw))
    if not errors and not name:
        errors = {'name': ["Name can not be blank."]}
    if errors:
        return render_template('tags/create.html', tag={'name': raw}, errors=errors), 422

    tag, created = tags.find_or_create(ctx.db, name)
    if created:
        flash("A new tag was created successfully.", 'success')
    else:
        flash(f"Tag {tag['name']} already exists.", 'info')
    return redirect(url_for('tags.index'))


@tags_bp.route('/<name>', methods=['GET'])
@with_context
def show(ctx, name):
    """Posts carrying the tag, paginated like the post index."""
    tag = tags.find_tag(ctx.db, tags.normalize(name))
    if tag is None:
        abort(404)
    page, per_page = page_params(request.args)
    pagination = paginate(ctx.db, posts.tagged_posts_query(), (tag['id'],), page, per_page)
    return render_template('posts/tags.html', tag=tag, posts=pagination.items, pagination=pagination)


@tags_bp.route('/<name>/delete', methods=['POST'])
@admin_required
@with_context
def destroy(ctx, name):
    tag = tags.find_tag(ctx.db, tags.normalize(name))
    if tag is None:
        abort(404)
    tags.delete_tag(ctx.db, tag['id'])
    flash("Tag was destroyed successfully", 'success')
    return redirect(url_for('tags.index'))
