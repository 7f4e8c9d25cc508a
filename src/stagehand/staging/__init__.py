"""Staging snapshot/restore engine.

Runs tasks against only the files staged for commit:
- Staged file resolution (resolver.py)
- Backup stash and patch files (snapshot.py)
- Merge marker preservation (merge_status.py)
- Re-applying unstaged and untracked edits (patches.py)
- Re-adding task edits to staged files (restage.py)
- Sequencing save, apply or restore, and delete (session.py)
"""
