"""
Design
======

The importer loads a user's media history from an external service or export
file into the shared catalog.

General goals:

* Every import run is visible afterwards as a MediaImportReport which lists
  each item that could not be imported and why
* A problem with one item never fails the rest of the import
* Celery tasks are ephemeral; they record their outcome on a JobRecord and
  check it before running so a redelivered task is not repeated

The import process works like this:

1. A user submits a DeployImportJobInput naming the source and carrying the
   data that source needs (a username, a feed URL, an uploaded export...).
   ImporterService.deploy checks that the payload for the source is present
   and queues an ImportMedia job.
2. When the job runs, ImporterService.execute creates a running report and
   hands the payload to the source adapter, which turns the external data into
   an ImportResult: a list of collections and a list of media items with their
   history, reviews and collection names. If the source can not be read at all
   the report is marked as failed and the import stops here.
3. Items are sorted so the ones with the most activity are imported first and
   the reconciler applies them to the catalog one by one. Each item is resolved
   to a catalog entry (asking a metadata provider when needed), then its
   history, reviews and collection memberships are saved. Failures are added
   to the result's failed items.
4. The report is marked as successful with a summary of the result and a job
   is queued to recalculate the user's summary.
5. A periodic job marks reports which never finished as failed.
"""
