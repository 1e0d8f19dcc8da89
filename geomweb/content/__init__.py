"""Site content edited by admins: team members, services and completed projects."""
