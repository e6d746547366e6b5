"""Web-push relay and Pusher channel authentication."""
