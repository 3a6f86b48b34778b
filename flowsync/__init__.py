"""flowsync: Airtable to Webflow CMS product synchronization."""
