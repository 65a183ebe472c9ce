import logging

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from request_context import deny, login_required, with_context
from models import comments, posts

logger = logging.getLogger(__name__)

comments_bp = Blueprint('comments', __name__)


def _comment_from_args(ctx):
    """The comment addressed by the ?cid= query value, or a 404."""
    comment = comments.get_comment(ctx.db, request.args.get('cid', type=int))
    if comment is None:
        abort(404)
    return comment


@comments_bp.route('/create/<int:pid>', methods=['POST'])
@login_required
@with_context
def create(ctx, pid):
    if posts.get_post(ctx.db, pid) is None:
        abort(404)
    _, errors = comments.create_comment(ctx.db, pid, ctx.user['id'], request.form.get('content', ''))
    if errors:
        flash("There was an error adding your comment.", 'danger')
    else:
        flash("Comment added successfully.", 'success')
    return redirect(url_for('posts.detail', pid=pid))


@comments_bp.route('/edit', methods=['GET'])
@login_required
@with_context
def edit(ctx):
    comment = _comment_from_args(ctx)
    if not comments.can_modify(ctx.user, comment):
        logger.warning("User %s may not edit comment %s", ctx.user['id'], comment['id'])
        return deny('posts.detail', pid=comment['post_id'])
    return render_template('comments/edit.html', comment=comment, errors={})


@comments_bp.route('/edit', methods=['POST'])
@login_required
@with_context
def edit_post(ctx):
    comment = _comment_from_args(ctx)
    if not comments.can_modify(ctx.user, comment):
        logger.warning("User %s may not edit comment %s", ctx.user['id'], comment['id'])
        return deny('posts.detail', pid=comment['post_id'])

    content = request.form.get('content', '')
    errors = comments.update_comment(ctx.db, comment, content)
    if errors:
        return render_template('comments/edit.html', comment={**comment, 'content': content}, errors=errors), 422

    flash("Comment was updated successfully", 'success')
    return redirect(url_for('posts.detail', pid=comment['post_id']))


@comments_bp.route('/delete', methods=['GET'])
@login_required
@with_context
def delete(ctx):
    comment = _comment_from_args(ctx)
    if not comments.can_modify(ctx.user, comment):
        logger.warning("User %s may not delete comment %s", ctx.user['id'], comment['id'])
        return deny('posts.detail', pid=comment['post_id'])

    comments.delete_comment(ctx.db, comment)
    flash("Comment deleted successfully", 'success')
    return redirect(url_for('posts.detail', pid=comment['post_id']))
