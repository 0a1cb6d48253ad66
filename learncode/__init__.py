"""LearnCode portal: the web front of the LearnCode practice platform."""
