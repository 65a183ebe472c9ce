import hashlib
import logging
import os
import shutil

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ('.png', '.jpg', '.jpeg')


def file_extension(filename):
    """
    Extension of the last path component, dot included ('' when none).
    A bare dotfile name such as '.png' has no extension, so it is not an image.
    """
    return os.path.splitext(filename or '')[1]


def allowed_image(filename, allowed=ALLOWED_EXTENSIONS):
    """
    Security check: only the listed image extensions pass.
    The comparison is case-sensitive, 'photo.JPG' is rejected.
    """
    if not filename:
        return False
    return file_extension(filename) in allowed


def hashed_name(filename):
    """
    Stored name for an upload: md5 of the original *name* plus its extension.
    The same original name always maps to the same stored file, which is how
    a re-upload of an already known image is detected.
    """
    digest = hashlib.md5(filename.encode('utf-8')).hexdigest()
    return f"{digest}{file_extension(filename)}"


class UploadStore:
    """Image files kept flat in a single directory, addressed by hashed name."""

    def __init__(self, directory, deferred=False):
        self.directory = directory
        # When deferred, released files wait in `pending` until flush()
        self.deferred = deferred
        self.pending = []

    def path_for(self, name):
        return os.path.join(self.directory, os.path.basename(name))

    def exists(self, name):
        return os.path.isfile(self.path_for(name))

    def ensure_directory(self):
        os.makedirs(self.directory, exist_ok=True)

    def store(self, name, stream):
        """Copies the readable `stream` to <directory>/<name>, replacing any previous file."""
        self.ensure_directory()
        with open(self.path_for(name), 'wb') as target:
            shutil.copyfileobj(stream, target)
        logger.info("Stored upload %s", name)

    def delete_if_unreferenced(self, name, reference_count):
        """
        Removes the file only when no row references it anymore. The caller
        counts references after its own row is gone. Returns True if removed.
        """
        if not name or reference_count > 0:
            return False
        os.remove(self.path_for(name))
        logger.info("Removed unreferenced upload %s", name)
        return True

    def release(self, name, reference_count):
        """
        delete_if_unreferenced for a file whose last row is being removed.
        A deferred store only queues the name; the file goes on flush(),
        once the removal of the row is committed.
        """
        if not self.deferred:
            return self.delete_if_unreferenced(name, reference_count)
        if name and reference_count == 0 and name not in self.pending:
            self.pending.append(name)
        return False

    def flush(self):
        """Removes the queued files. The rows are already gone at this point."""
        pending, self.pending = self.pending, []
        for name in pending:
            try:
                self.delete_if_unreferenced(name, 0)
            except OSError:
                logger.exception("Could not remove released upload %s", name)

    def discard(self, name):
        """Best-effort removal used to clean up after a failed database write."""
        try:
            os.remove(self.path_for(name))
        except OSError:
            logger.exception("Could not remove orphaned upload %s", name)


def reference_count(db, name):
    """Number of posts whose file_name points at `name`."""
    return db.execute('SELECT COUNT(*) FROM posts WHERE file_name = ?', (name,)).fetchone()[0]
