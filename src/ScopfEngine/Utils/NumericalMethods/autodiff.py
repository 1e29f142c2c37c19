# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Callable, Union, Tuple, Any
import numpy as np
from scipy.sparse import csc_matrix as csc
from ScopfEngine.basic_structures import Vec


def unpack(ret: Union[Vec, Tuple[Vec, ...]]) -> Vec:
    """
    Unpack the returning vector depending if ret is the vector or a tuple including the vector
    :param ret: Tuple with the vector or vector directly
    :return: Vector
    """
    if isinstance(ret, tuple):
        f0 = ret[0]
    else:
        f0 = ret
    return f0


def calc_autodiff_jacobian_f_obj(func: Callable[..., float], x: Vec, arg=(), h=1e-6) -> Vec:
    """
    Compute the gradient of a scalar function `func` at `x` using central differences.
    :param func: objective function accepting `x` and `arg` and returning a float.
    :param x: Point at which to evaluate the gradient (numpy array).
    :param arg: Tuple of arguments to call func aside from x [func(x, *arg)]
    :param h: Small step for finite difference.
    :return: gradient vector
    """
    nx = len(x)
    jac = np.zeros(nx)

    for j in range(nx):
        x_plus_h = np.copy(x)
        x_plus_h[j] += h
        x_minus_h = np.copy(x)
        x_minus_h[j] -= h
        jac[j] = (func(x_plus_h, *arg) - func(x_minus_h, *arg)) / (2.0 * h)

    return jac


def calc_autodiff_jacobian(func: Callable[[Vec, Any], Union[Vec, Tuple[Vec, Any]]], x: Vec, arg=(), h=1e-6) -> csc:
    """
    Compute the Jacobian matrix of `func` at `x` using central differences.

    :param func: function accepting a vector x and args, and returning either a vector or a
                 tuple where the first argument is a vector.
    :param x: Point at which to evaluate the Jacobian (numpy array).
    :param arg: Tuple of arguments to call func aside from x [func(x, *arg)]
    :param h: Small step for finite difference.
    :return: Jacobian matrix as a CSC matrix.
    """
    nx = len(x)
    n_rows = len(unpack(func(x, *arg)))
    jac = np.zeros((n_rows, nx))

    for j in range(nx):
        x_plus_h = np.copy(x)
        x_plus_h[j] += h
        x_minus_h = np.copy(x)
        x_minus_h[j] -= h
        jac[:, j] = (unpack(func(x_plus_h, *arg)) - unpack(func(x_minus_h, *arg))) / (2.0 * h)

    return csc(jac)


def calc_autodiff_hessian(grad_func: Callable[[Vec, Any], Vec], x: Vec, arg=(), h=1e-6) -> csc:
    """
    Compute a Hessian matrix as the finite differences Jacobian of a gradient function.
    For a Lagrangian, pass a function returning sigma * df/dx + J(x)' lambda.

    :param grad_func: function returning the gradient at x
    :param x: Point at which to evaluate the Hessian (numpy array).
    :param arg: Tuple of arguments to call grad_func aside from x
    :param h: Small step for finite difference.
    :return: Hessian matrix as a CSC matrix.
    """
    return calc_autodiff_jacobian(grad_func, x, arg=arg, h=h)
