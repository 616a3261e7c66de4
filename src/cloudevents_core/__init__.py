"""CloudEvents event model, structured formats and message transcoding."""
