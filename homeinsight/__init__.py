"""HomeInsight property Q&A engine."""
