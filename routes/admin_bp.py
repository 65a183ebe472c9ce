import os

from flask import Blueprint, render_template

from request_context import admin_required, with_context

admin_bp = Blueprint('admin', __name__)


# --- STATS & METRICS ---

def get_admin_stats(ctx):
    db = ctx.db
    directory = ctx.uploads.directory
    stored = len(os.listdir(directory)) if os.path.isdir(directory) else 0
    return {
        "total_users": db.execute('SELECT COUNT(*) FROM users').fetchone()[0],
        "total_admins": db.execute('SELECT COUNT(*) FROM users WHERE admin = 1').fetchone()[0],
        "total_posts": db.execute('SELECT COUNT(*) FROM posts').fetchone()[0],
        "total_comments": db.execute('SELECT COUNT(*) FROM comments').fetchone()[0],
        "total_tags": db.execute('SELECT COUNT(*) FROM tags').fetchone()[0],
        "stored_files": stored,
    }


@admin_bp.route('/admin')
@admin_required
@with_context
def admin_panel(ctx):
    """Renders the main administrative dashboard view."""
    return render_template('admin.html', stats=get_admin_stats(ctx))
