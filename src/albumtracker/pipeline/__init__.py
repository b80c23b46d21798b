"""
Pipeline module for albumtracker ingestion.

Provides the processed-file markers, the single-image worker and the batch
coordinator that ties them to the Vision and Discogs clients.
"""
