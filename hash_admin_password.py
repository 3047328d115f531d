import getpass
from werkzeug.security import generate_password_hash

# Prints the value to put in ADMIN_PASSWORD_HASH
password = getpass.getpass("Admin password: ")
if not password:
    print("Password cannot be empty!")
else:
    print(generate_password_hash(password, method='pbkdf2:sha256', salt_length=16))
