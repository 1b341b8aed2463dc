"""Magic Mock: AI-generated timed quizzes in the terminal."""
