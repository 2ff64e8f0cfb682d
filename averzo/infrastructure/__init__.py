"""Infrastructure: Firestore, messaging, and AI provider integrations."""
