LOGIN_TYPE_SUPER = "admin_super"
LOGIN_TYPE_PADRAO = "admin_padrao"
LOGIN_TYPES = (LOGIN_TYPE_SUPER, LOGIN_TYPE_PADRAO)
