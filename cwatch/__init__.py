"""container-watch (cwatch).

Keeps a directory of docker compose projects in line with git:
 - redeploys running projects whose compose file changed upstream
 - optionally redeploys running projects whose containers drifted from
   the images their compose file declares
 - optionally prunes dangling images afterwards

One run at a time, guarded by a lock file in the repository root.
"""
