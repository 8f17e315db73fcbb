"""External collaborators: email delivery and captcha verification."""
